"""Initial database schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19

Creates the category, email, chat and resource tables for the
Handyman Office back end.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Category rules
    op.create_table('categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('keywords', sa.JSON()),
        sa.Column('patterns', sa.JSON()),
        sa.Column('domains', sa.JSON()),
        sa.Column('color', sa.String(7), server_default='#3B82F6'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_categories_active', 'categories', ['active'])

    # Classified emails
    op.create_table('emails',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('message_id', sa.String(255)),
        sa.Column('subject', sa.Text()),
        sa.Column('sender', sa.String(255)),
        sa.Column('body', sa.Text()),
        sa.Column('snippet', sa.Text()),
        sa.Column('received_at', sa.DateTime()),
        sa.Column('category', sa.String(100), nullable=False, server_default='uncategorized'),
        sa.Column('confidence', sa.Float(), server_default='0'),
        sa.Column('scores', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('message_id')
    )
    op.create_index('ix_emails_category', 'emails', ['category'])
    op.create_index('ix_emails_received_at', 'emails', ['received_at'])

    # Chat sessions and transcript
    op.create_table('chat_sessions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('client_id', sa.String(36)),
        sa.Column('title', sa.String(255), server_default='New Chat Session'),
        sa.Column('status', sa.String(20), server_default='active'),
        sa.Column('context', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_sessions_updated_at', 'chat_sessions', ['updated_at'])
    op.create_index('ix_chat_sessions_status', 'chat_sessions', ['status'])

    op.create_table('chat_messages',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('session_id', sa.String(36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('extra_data', sa.JSON()),
        sa.ForeignKeyConstraint(['session_id'], ['chat_sessions.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chat_messages_session', 'chat_messages', ['session_id', 'position'])

    # Resources created from chat
    op.create_table('quotations',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('client_email', sa.String(255)),
        sa.Column('services', sa.Text()),
        sa.Column('urgency', sa.String(20)),
        sa.Column('status', sa.String(50), server_default='draft'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('services',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('category', sa.String(100)),
        sa.Column('description', sa.Text()),
        sa.Column('price', sa.Float()),
        sa.Column('unit', sa.String(50)),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('clients',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    # Event log
    op.create_table('event_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('extra_data', sa.JSON()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_entity', 'event_log', ['entity_type', 'entity_id'])
    op.create_index('ix_event_log_timestamp', 'event_log', ['timestamp'])


def downgrade() -> None:
    op.drop_table('event_log')
    op.drop_table('clients')
    op.drop_table('services')
    op.drop_table('quotations')
    op.drop_table('chat_messages')
    op.drop_table('chat_sessions')
    op.drop_table('emails')
    op.drop_table('categories')
