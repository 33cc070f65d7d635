"""Guest core schema - weddings, guests, tags, event invitations and seating

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Union

from alembic import op
import sqlalchemy as sa
import sqlalchemy_utils

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def _uuid() -> sqlalchemy_utils.UUIDType:
    return sqlalchemy_utils.UUIDType(binary=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'weddings',
        sa.Column('uuid', _uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('partner_names', sa.String(255), nullable=True),
        sa.Column('status', sa.Enum('draft', 'active', 'archived', name='wedding_status_enum'), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('meal_config', sa.JSON(), nullable=False),
        sa.Column('event_details', sa.JSON(), nullable=False),
    )

    op.create_table(
        'guests',
        sa.Column('uuid', _uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('wedding_id', _uuid(), sa.ForeignKey('weddings.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('rsvp_status', sa.Enum('pending', 'attending', 'not_attending', name='rsvp_status_enum'), nullable=False, index=True),
        sa.Column('dietary_notes', sa.Text(), nullable=True),
        sa.Column('rsvp_token_hash', sa.String(64), nullable=True, unique=True, index=True),
        sa.Column('rsvp_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rsvp_token_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rsvp_token_last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tag_ids', sa.JSON(), nullable=False),
        sa.Column('plus_one_allowance', sa.Integer(), nullable=False),
        sa.Column('plus_one_guests', sa.JSON(), nullable=False),
        sa.Column('meal_option_id', sa.String(64), nullable=True),
        sa.Column('event_rsvps', sa.JSON(), nullable=False),
        sa.Column('invited_event_ids', sa.JSON(), nullable=False),
        sa.Column('photo_opt_out', sa.Boolean(), nullable=False),
        sa.Column('rsvp_submitted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'uq_guests_wedding_email', 'guests', ['wedding_id', sa.text('lower(email)')], unique=True
    )

    op.create_table(
        'guest_tags',
        sa.Column('uuid', _uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('wedding_id', _uuid(), sa.ForeignKey('weddings.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(16), nullable=False),
    )
    op.create_index(
        'uq_guest_tags_wedding_name', 'guest_tags', ['wedding_id', sa.text('lower(name)')], unique=True
    )

    op.create_table(
        'event_guest_assignments',
        sa.Column('uuid', _uuid(), primary_key=True),
        sa.Column('wedding_id', _uuid(), sa.ForeignKey('weddings.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('guest_id', _uuid(), sa.ForeignKey('guests.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('event_id', sa.String(64), nullable=False, index=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('guest_id', 'event_id', name='uq_event_guest'),
    )

    op.create_table(
        'seating_tables',
        sa.Column('uuid', _uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('wedding_id', _uuid(), sa.ForeignKey('weddings.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.CheckConstraint('capacity > 0', name='ck_seating_tables_capacity'),
    )

    op.create_table(
        'seating_assignments',
        sa.Column('uuid', _uuid(), primary_key=True),
        sa.Column('guest_id', _uuid(), sa.ForeignKey('guests.uuid', ondelete='CASCADE'), nullable=False, unique=True, index=True),
        sa.Column('table_id', _uuid(), sa.ForeignKey('seating_tables.uuid', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('seat_number', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('seating_assignments')
    op.drop_table('seating_tables')
    op.drop_table('event_guest_assignments')
    op.drop_index('uq_guest_tags_wedding_name', table_name='guest_tags')
    op.drop_table('guest_tags')
    op.drop_index('uq_guests_wedding_email', table_name='guests')
    op.drop_table('guests')
    sa.Enum(name='rsvp_status_enum').drop(op.get_bind(), checkfirst=True)
    op.drop_table('weddings')
    sa.Enum(name='wedding_status_enum').drop(op.get_bind(), checkfirst=True)
