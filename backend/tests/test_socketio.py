import pytest

from crazyemoji.services.rooms import identity

from conftest import PASSWORD

NS = '/ws'


def _drain(sio):
    return sio.get_received(NS)


def _args(events, name):
    return [e['args'][0] if e['args'] else None for e in events if e['name'] == name]


def _signup(sio, username):
    sio.emit('createUser', {'username': username, 'password': PASSWORD}, namespace=NS)
    assert _args(_drain(sio), 'createdUser') == [username]


@pytest.fixture()
def lobby(sio_factory):
    """alice, bob and carol connected, signed up and in one room."""
    clients = {name: sio_factory() for name in ['alice', 'bob', 'carol']}
    for name, sio in clients.items():
        _signup(sio, name)

    clients['alice'].emit('createRoom', {
        'roomName': 'Room1', 'category': 'Animals', 'rounds': 10, 'roundDuration': 30,
    }, namespace=NS)
    (code,) = _args(_drain(clients['alice']), 'createdRoom')

    for name in ['bob', 'carol']:
        clients[name].emit('joinRoom', {'roomCode': code}, namespace=NS)
    for sio in clients.values():
        _drain(sio)
    return code, clients


def test_socket_connect_and_ping(sio_client):
    if not sio_client.is_connected(NS):
        sio_client.connect(namespace=NS)
    assert sio_client.is_connected(NS)
    assert _args(_drain(sio_client), 'connected')

    sio_client.emit('ping', {'n': 1}, namespace=NS)
    assert _args(_drain(sio_client), 'pong') == [{'n': 1}]


def test_join_notifies_the_rest_of_the_room(sio_factory):
    alice, bob = sio_factory(), sio_factory()
    _signup(alice, 'alice')
    _signup(bob, 'bob')
    alice.emit('createRoom', {'roomName': 'Room1', 'category': 'Food', 'rounds': 10, 'roundDuration': 15},
               namespace=NS)
    (code,) = _args(_drain(alice), 'createdRoom')

    bob.emit('joinRoom', {'roomCode': code}, namespace=NS)

    joined = _args(_drain(bob), 'joinedRoom')
    assert joined[0]['roomCode'] == code
    assert joined[0]['players'] == ['alice', 'bob']
    assert _args(_drain(alice), 'playerJoined') == ['bob']


def test_full_round(lobby):
    code, clients = lobby

    clients['alice'].emit('startGame', namespace=NS)
    for sio in clients.values():
        assert _args(_drain(sio), 'gameStarted') == [code]

    clients['bob'].emit('getCommander', namespace=NS)
    received = {name: _drain(sio) for name, sio in clients.items()}
    selected = [name for name, events in received.items() if _args(events, 'commanderSelected')]
    assert len(selected) == 1
    commander = selected[0]
    guessers = [name for name in clients if name != commander]
    for name in guessers:
        assert _args(received[name], 'commanderAnnounced') == [commander]

    clients[guessers[0]].emit('getWord', namespace=NS)
    errors = _args(_drain(clients[guessers[0]]), 'Error')
    assert errors[0]['code'] == 'FORBIDDEN'
    assert errors[0]['command'] == 'getWord'

    clients[commander].emit('getWord', namespace=NS)
    (word,) = _args(_drain(clients[commander]), 'recivedWord')

    emojis = ['🐘', '👃']
    clients[commander].emit('sendEmojis', {'emojis': emojis}, namespace=NS)
    assert _args(_drain(clients[commander]), 'emojisRecieved') == [code]
    for name in guessers:
        assert _args(_drain(clients[name]), 'recieveEmojis') == [emojis]

    clients[guessers[0]].emit('checkWord', {'word': word.upper()}, namespace=NS)
    assert _args(_drain(clients[guessers[0]]), 'wordChecked') == [True]
    clients[guessers[1]].emit('checkWord', {'word': 'definitely wrong'}, namespace=NS)
    assert _args(_drain(clients[guessers[1]]), 'wordChecked') == [False]

    clients[commander].emit('getResults', namespace=NS)
    for sio in clients.values():
        events = _drain(sio)
        (ended,) = _args(events, 'roundEnded')
        assert ended['nextRound'] is True
        assert ended['results'][0]['username'] == guessers[0]
        assert ended['results'][0]['gameScore'] == 100
        assert _args(events, 'roundStarted') == [{'roomCode': code, 'round': 2}]

    # A late getResults only answers the caller
    clients[guessers[1]].emit('getResults', namespace=NS)
    assert len(_args(_drain(clients[guessers[1]]), 'roundEnded')) == 1
    assert _drain(clients[guessers[0]]) == []


def test_creator_leaving_lobby_ends_game(lobby):
    code, clients = lobby

    clients['alice'].emit('leftRoom', namespace=NS)

    for name in ['bob', 'carol']:
        assert _args(_drain(clients[name]), 'gameEnded') == [code]

    clients['bob'].emit('getCurrentUserData', namespace=NS)
    assert _args(_drain(clients['bob']), 'currentUserData') == [{'username': 'bob', 'roomCode': '-1'}]


def test_player_leaving_is_announced(lobby):
    code, clients = lobby

    clients['carol'].emit('leftRoom', namespace=NS)

    for sio in clients.values():
        assert _args(_drain(sio), 'playerLeft') == ['carol']


def test_login_on_new_connection_rejoins_room(lobby, sio_factory):
    code, clients = lobby
    clients['bob'].disconnect(namespace=NS)
    reconnected = sio_factory()

    reconnected.emit('loginUser', {'username': 'bob', 'password': PASSWORD}, namespace=NS)
    assert _args(_drain(reconnected), 'userLoggedIn') == ['bob']

    reconnected.emit('getCurrentUserData', namespace=NS)
    assert _args(_drain(reconnected), 'currentUserData') == [{'username': 'bob', 'roomCode': code}]

    clients['alice'].emit('startGame', namespace=NS)
    assert _args(_drain(reconnected), 'gameStarted') == [code]


def test_login_elsewhere_detaches_the_old_connection(lobby, sio_factory):
    code, clients = lobby
    stale = clients['bob']
    fresh = sio_factory()

    fresh.emit('loginUser', {'username': 'bob', 'password': PASSWORD}, namespace=NS)
    assert _args(_drain(fresh), 'userLoggedIn') == ['bob']

    clients['alice'].emit('startGame', namespace=NS)
    assert _args(_drain(fresh), 'gameStarted') == [code]
    assert _drain(stale) == []
    assert _args(_drain(clients['carol']), 'gameStarted') == [code]


def test_repeated_get_commander_answers_only_the_caller(lobby):
    code, clients = lobby
    clients['alice'].emit('startGame', namespace=NS)
    clients['alice'].emit('getCommander', namespace=NS)
    received = {name: _drain(sio) for name, sio in clients.items()}
    (commander,) = [name for name, events in received.items() if _args(events, 'commanderSelected')]
    guesser = next(name for name in clients if name != commander)

    clients[guesser].emit('getCommander', namespace=NS)
    assert _args(_drain(clients[guesser]), 'commanderAnnounced') == [commander]
    for name, sio in clients.items():
        if name != guesser:
            assert _drain(sio) == []

    clients[commander].emit('getCommander', namespace=NS)
    events = _drain(clients[commander])
    assert _args(events, 'commanderSelected') == [commander]
    assert _args(events, 'commanderAnnounced') == []
    for name, sio in clients.items():
        if name != commander:
            assert _drain(sio) == []


def test_get_user_data(lobby):
    _, clients = lobby
    clients['alice'].emit('getUserData', {'username': 'carol'}, namespace=NS)
    assert _args(_drain(clients['alice']), 'userData') == ['carol']


@pytest.mark.parametrize('payload', [
    {'username': 'nobody', 'password': PASSWORD},
    {'username': 'alice', 'password': 'wrong_pass1'},
])
def test_login_failures_share_one_code(sio_factory, payload):
    alice = sio_factory()
    _signup(alice, 'alice')
    other = sio_factory()

    other.emit('loginUser', payload, namespace=NS)

    (error,) = _args(_drain(other), 'Error')
    assert error['code'] == 'INCORRECT_USERNAME_PASSWORD'
    assert error['command'] == 'loginUser'


def test_validation_errors_carry_codes(sio_client):
    _drain(sio_client)
    sio_client.emit('createUser', {'username': 'x', 'password': PASSWORD}, namespace=NS)
    assert _args(_drain(sio_client), 'Error')[0]['code'] == 'INCORRECT_USERNAME'

    sio_client.emit('createRoom', {'roomName': 'Room1', 'category': 'Animals', 'rounds': 10,
                                   'roundDuration': 30}, namespace=NS)
    assert _args(_drain(sio_client), 'Error')[0]['code'] == 'FORBIDDEN'

    sio_client.emit('getCurrentUserData', namespace=NS)
    assert _args(_drain(sio_client), 'Error')[0]['code'] == 'INCORRECT_CONNECTION_ID'


@pytest.mark.parametrize('event, payload', [
    ('createUser', 'not an object'),
    ('createRoom', {'roomName': 'Room1', 'category': 'Animals', 'rounds': 10, 'roundDuration': '30'}),
    ('joinRoom', {'roomCode': 123456}),
    ('sendEmojis', {}),
])
def test_malformed_payloads(sio_client, event, payload):
    _drain(sio_client)
    sio_client.emit(event, payload, namespace=NS)
    (error,) = _args(_drain(sio_client), 'Error')
    assert error['code'] == 'INVALID_DATA'
    assert error['command'] == event


def test_unexpected_failure_is_reported_with_correlation_id(sio_client, monkeypatch):
    def broken(connection_id):
        raise RuntimeError('database on fire')

    monkeypatch.setattr(identity, 'get_current_user_data', broken)
    _drain(sio_client)

    sio_client.emit('getCurrentUserData', namespace=NS)

    (error,) = _args(_drain(sio_client), 'Error')
    assert error['code'] == 'INTERNAL_ERROR'
    assert error['command'] == 'getCurrentUserData'
    assert len(error['correlation_id']) == 32
    assert 'fire' not in error['message']
    assert sio_client.is_connected(NS)
