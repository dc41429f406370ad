"""create user, category, word, room, room_member and room_word tables

Revision ID: 5c2e7a91d0b4
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e7a91d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('username', sa.String(length=32), nullable=False),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('connection_id', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('username'),
    )
    op.create_index('ix_user_connection_id', 'user', ['connection_id'], unique=True)

    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_category_name', 'category', ['name'], unique=True)

    op.create_table(
        'word',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.String(length=64), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_word_category_id', 'word', ['category_id'], unique=False)

    op.create_table(
        'room',
        sa.Column('room_code', sa.String(length=6), nullable=False),
        sa.Column('room_name', sa.String(length=32), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('rounds', sa.Integer(), nullable=False),
        sa.Column('round_duration', sa.Integer(), nullable=False),
        sa.Column('room_creator', sa.String(length=32), nullable=False),
        sa.Column('game_started', sa.Boolean(), nullable=False),
        sa.Column('round_word', sa.String(length=64), nullable=True),
        sa.Column('emojis_sent', sa.Boolean(), nullable=False),
        sa.Column('emojis_sent_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('round_ended', sa.Boolean(), nullable=False),
        sa.Column('current_round', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['category.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['room_creator'], ['user.username']),
        sa.PrimaryKeyConstraint('room_code'),
    )

    op.create_table(
        'room_member',
        sa.Column('room_code', sa.String(length=6), nullable=False),
        sa.Column('username', sa.String(length=32), nullable=False),
        sa.Column('role', sa.String(length=9), nullable=False),
        sa.Column('game_score', sa.BigInteger(), nullable=False),
        sa.Column('guessed_right', sa.Boolean(), nullable=False),
        sa.Column('guessed_word', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['room_code'], ['room.room_code'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['username'], ['user.username']),
        sa.PrimaryKeyConstraint('room_code', 'username'),
        sa.UniqueConstraint('username', name='uq_room_member_username'),
    )

    op.create_table(
        'room_word',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_code', sa.String(length=6), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('text', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['room_code'], ['room.room_code'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_room_word_room_code', 'room_word', ['room_code'], unique=False)


def downgrade():
    op.drop_index('ix_room_word_room_code', table_name='room_word')
    op.drop_table('room_word')
    op.drop_table('room_member')
    op.drop_table('room')
    op.drop_index('ix_word_category_id', table_name='word')
    op.drop_table('word')
    op.drop_index('ix_category_name', table_name='category')
    op.drop_table('category')
    op.drop_index('ix_user_connection_id', table_name='user')
    op.drop_table('user')
