"""Incident tables and seed templates

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
import uuid

# revision identifiers, used by Alembic.
revision = '202610190001'
down_revision = None
branch_labels = None
depends_on = None


SEED_TEMPLATES = [
    ('database-outage', 'Database Outage', 'P1', 'database',
     'Primary database is unavailable or rejecting connections.'),
    ('api-degradation', 'API Performance Degradation', 'P2', 'api-gateway',
     'API latency or error rates are elevated.'),
    ('payment-failure', 'Payment Processing Failure', 'P1', 'payment-processor',
     'Payments are failing or not being processed.'),
    ('auth-slowness', 'Authentication Service Slowness', 'P2', 'auth-service',
     'Logins are slow or intermittently failing.'),
    ('cdn-issues', 'CDN Performance Issues', 'P3', 'cdn',
     'Static assets are slow or failing to load in some regions.'),
    ('security-breach', 'Security Incident', 'P1', None,
     'Suspected unauthorized access or data exposure.'),
    ('deployment-rollback', 'Failed Deployment Requiring Rollback', 'P2', None,
     'A deployment caused a regression and is being rolled back.'),
    ('third-party-outage', 'Third-Party Service Outage', 'P3', None,
     'An upstream vendor is degraded or unavailable.'),
]


def upgrade() -> None:
    # ------------------------------
    # incidents
    # ------------------------------
    op.create_table(
        'incidents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('severity', sa.String(2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='declared'),
        sa.Column('service', sa.String(100), nullable=False),
        sa.Column('commander_id', sa.String(50), nullable=False),
        sa.Column('slack_channel_id', sa.String(50), nullable=True),
        sa.Column('slack_channel_name', sa.String(80), nullable=True),
        sa.Column('declared_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            "(status = 'resolved') = (resolved_at IS NOT NULL AND duration_minutes IS NOT NULL)",
            name='ck_incidents_resolution_fields',
        ),
    )
    op.create_index('ix_incidents_slack_channel_id', 'incidents', ['slack_channel_id'])
    op.create_index('ix_incidents_status', 'incidents', ['status'])

    # ------------------------------
    # incident_timeline
    # ------------------------------
    op.create_table(
        'incident_timeline',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False),
        sa.Column('incident_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('event_type', sa.String(30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('posted_by', sa.String(50), nullable=False),
    )
    op.create_index(
        'ix_incident_timeline_incident_order',
        'incident_timeline',
        ['incident_id', 'timestamp', 'sequence'],
    )

    # ------------------------------
    # audit_log
    # ------------------------------
    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False),
        sa.Column('incident_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('incidents.id'), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('actor_id', sa.String(50), nullable=False),
        sa.Column('old_state', sa.JSON(), nullable=True),
        sa.Column('new_state', sa.JSON(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_log_incident_id', 'audit_log', ['incident_id'])
    op.create_index('ix_audit_log_action', 'audit_log', ['action'])

    # ------------------------------
    # incident_notifications
    # ------------------------------
    op.create_table(
        'incident_notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False),
        sa.Column('incident_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notification_type', sa.String(20), nullable=False),
        sa.Column('recipient', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_incident_notifications_incident_id', 'incident_notifications', ['incident_id'])

    # ------------------------------
    # statuspage_mappings
    # ------------------------------
    op.create_table(
        'statuspage_mappings',
        sa.Column('service_name', sa.String(100), primary_key=True, nullable=False),
        sa.Column('component_id', sa.String(100), nullable=False),
    )

    # ------------------------------
    # incident_templates
    # ------------------------------
    templates = op.create_table(
        'incident_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('severity', sa.String(2), nullable=False),
        sa.Column('service', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.bulk_insert(
        templates,
        [
            {
                'id': uuid.uuid4(),
                'name': name,
                'title': title,
                'severity': severity,
                'service': service,
                'description': description,
                'is_active': True,
            }
            for name, title, severity, service, description in SEED_TEMPLATES
        ],
    )


def downgrade() -> None:
    op.drop_table('incident_templates')
    op.drop_table('statuspage_mappings')
    op.drop_table('incident_notifications')
    op.drop_table('audit_log')
    op.drop_table('incident_timeline')
    op.drop_table('incidents')
