"""create timer, timer_log_entry, message, note and shared_file tables

Revision ID: 4c7e9a1b2d3f
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7e9a1b2d3f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'timer' not in existing_tables:
        op.create_table(
            'timer',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.String(length=128), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('remaining_time', sa.Integer(), nullable=False),
            sa.Column('start_time', sa.Float(), nullable=True),
            sa.Column('last_update_by', sa.String(length=128), nullable=True),
            sa.Column('updated_at', sa.Float(), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False),
        )
        op.create_index('ix_timer_room_id', 'timer', ['room_id'], unique=True)
        op.create_index('ix_timer_status', 'timer', ['status'])

    if 'timer_log_entry' not in existing_tables:
        op.create_table(
            'timer_log_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('timer_id', sa.Integer(), sa.ForeignKey('timer.id'), nullable=False),
            sa.Column('action', sa.String(length=32), nullable=False),
            sa.Column('actor', sa.String(length=128), nullable=True),
            sa.Column('timestamp', sa.Float(), nullable=False),
        )
        op.create_index('ix_timer_log_entry_timer_id', 'timer_log_entry', ['timer_id'])

    if 'message' not in existing_tables:
        op.create_table(
            'message',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.String(length=128), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_message_room_id', 'message', ['room_id'])

    if 'note' not in existing_tables:
        op.create_table(
            'note',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.String(length=128), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('content', sa.Text(), nullable=False),
            sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_note_room_id', 'note', ['room_id'])

    if 'shared_file' not in existing_tables:
        op.create_table(
            'shared_file',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.String(length=128), nullable=False),
            sa.Column('filename', sa.String(length=255), nullable=False, unique=True),
            sa.Column('original_name', sa.String(length=255), nullable=False),
            sa.Column('uploaded_by', sa.String(length=64), nullable=True),
            sa.Column('size', sa.Integer(), nullable=True),
            sa.Column('mimetype', sa.String(length=128), nullable=True),
            sa.Column('upload_date', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_shared_file_room_id', 'shared_file', ['room_id'])


def downgrade():
    op.drop_table('shared_file')
    op.drop_table('note')
    op.drop_table('message')
    op.drop_table('timer_log_entry')
    op.drop_table('timer')
