"""initial schema: users, telephony configurations, webhook events, contacts

Revision ID: 0001_initial
Revises:
Create Date: 2025-07-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_status'), 'users', ['status'], unique=False)

    op.create_table(
        'telephony_configurations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('inbound_number', sa.String(length=20), nullable=True),
        sa.Column('call_action', sa.String(length=20), nullable=False),
        sa.Column('forward_to_phone', sa.String(length=20), nullable=True),
        sa.Column('sip_endpoint', sa.String(length=255), nullable=True),
        sa.Column('sip_username', sa.String(length=100), nullable=True),
        # Fernet token, never plaintext
        sa.Column('sip_password', sa.Text(), nullable=True),
        sa.Column('sms_forwarding_enabled', sa.Boolean(), nullable=False),
        sa.Column('custom_greeting', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_telephony_configurations_user_id'), 'telephony_configurations', ['user_id'], unique=True)
    op.create_index(op.f('ix_telephony_configurations_inbound_number'), 'telephony_configurations', ['inbound_number'], unique=True)

    op.create_table(
        'webhook_events',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('direction', sa.String(length=10), nullable=False),
        sa.Column('from_number', sa.String(length=50), nullable=True),
        sa.Column('to_number', sa.String(length=50), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('call_sid', sa.String(length=64), nullable=True),
        sa.Column('message_sid', sa.String(length=64), nullable=True),
        sa.Column('intent_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('provider_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_webhook_events_user_id'), 'webhook_events', ['user_id'], unique=False)
    op.create_index(op.f('ix_webhook_events_type'), 'webhook_events', ['type'], unique=False)
    op.create_index(op.f('ix_webhook_events_call_sid'), 'webhook_events', ['call_sid'], unique=False)
    op.create_index(op.f('ix_webhook_events_message_sid'), 'webhook_events', ['message_sid'], unique=False)
    op.create_index(op.f('ix_webhook_events_intent_id'), 'webhook_events', ['intent_id'], unique=False)
    op.create_index(op.f('ix_webhook_events_status'), 'webhook_events', ['status'], unique=False)
    op.create_index(op.f('ix_webhook_events_created_at'), 'webhook_events', ['created_at'], unique=False)

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contacts_user_id_name', 'contacts', ['user_id', 'name'], unique=False)
    op.create_index('ix_contacts_user_id_phone_number', 'contacts', ['user_id', 'phone_number'], unique=False)


def downgrade():
    op.drop_index('ix_contacts_user_id_phone_number', table_name='contacts')
    op.drop_index('ix_contacts_user_id_name', table_name='contacts')
    op.drop_table('contacts')

    op.drop_index(op.f('ix_webhook_events_created_at'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_status'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_intent_id'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_message_sid'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_call_sid'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_type'), table_name='webhook_events')
    op.drop_index(op.f('ix_webhook_events_user_id'), table_name='webhook_events')
    op.drop_table('webhook_events')

    op.drop_index(op.f('ix_telephony_configurations_inbound_number'), table_name='telephony_configurations')
    op.drop_index(op.f('ix_telephony_configurations_user_id'), table_name='telephony_configurations')
    op.drop_table('telephony_configurations')

    op.drop_index(op.f('ix_users_status'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
