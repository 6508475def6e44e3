"""create matching tables

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9a1c2d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('event_code', sa.String(32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_event_code', 'events', ['event_code'], unique=True)

    op.create_table(
        'photos',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('original_url', sa.String(1024), nullable=False),
        sa.Column('thumbnail_url', sa.String(1024), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_photos_id', 'photos', ['id'])
    op.create_index('ix_photos_event_id', 'photos', ['event_id'])

    op.create_table(
        'face_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('photo_id', sa.Uuid(), sa.ForeignKey('photos.id', ondelete='CASCADE'), nullable=False),
        sa.Column('face_token', sa.String(128), nullable=False),
        sa.Column('face_rectangle', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_face_tokens_id', 'face_tokens', ['id'])
    op.create_index('ix_face_tokens_photo_id', 'face_tokens', ['photo_id'])

    op.create_table(
        'participants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('selfie_url', sa.String(1024), nullable=True),
        sa.Column('selfie_face_token', sa.String(128), nullable=True),
        sa.Column('photo_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_participants_id', 'participants', ['id'])
    op.create_index('ix_participants_event_id', 'participants', ['event_id'])

    op.create_table(
        'participant_matches',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('participant_id', sa.Uuid(), sa.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('photo_id', sa.Uuid(), sa.ForeignKey('photos.id', ondelete='CASCADE'), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('participant_id', 'photo_id', name='uq_participant_matches_participant_photo'),
    )
    op.create_index('ix_participant_matches_id', 'participant_matches', ['id'])
    op.create_index('ix_participant_matches_participant_id', 'participant_matches', ['participant_id'])
    op.create_index('ix_participant_matches_photo_id', 'participant_matches', ['photo_id'])


def downgrade() -> None:
    op.drop_table('participant_matches')
    op.drop_table('participants')
    op.drop_table('face_tokens')
    op.drop_table('photos')
    op.drop_table('events')
