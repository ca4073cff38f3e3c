"""create_consent_registry_schema

Revision ID: 5f1c9a2e7d43
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5f1c9a2e7d43'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

verification_method = postgresql.ENUM(
    'meta_tag', 'dns_txt', name='verification_method', create_type=False
)
cookie_category = postgresql.ENUM(
    'necessary', 'preferences', 'statistics', 'marketing',
    name='cookie_category', create_type=False,
)
same_site_policy = postgresql.ENUM(
    'Strict', 'Lax', 'None', name='same_site_policy', create_type=False
)
consent_method = postgresql.ENUM(
    'banner_accept_all', 'banner_reject_all', 'banner_customize',
    name='consent_method', create_type=False,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Create accounts, api_keys, websites, cookies and consents."""
    bind = op.get_bind()
    # cookie_category declaration order is the catalog sort order
    for enum_type in (verification_method, cookie_category, same_site_policy, consent_method):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'accounts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_accounts')),
    )

    op.create_table(
        'api_keys',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('account_id', sa.UUID(), nullable=False),
        sa.Column('key_hash', sa.String(length=255), nullable=False,
                  comment='HMAC of the operator key - never store plaintext'),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE',
                                name=op.f('fk_api_keys_account_id_accounts')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_api_keys')),
        sa.UniqueConstraint('key_hash', name=op.f('uq_api_keys_key_hash')),
    )
    op.create_index(op.f('ix_api_keys_account_id'), 'api_keys', ['account_id'])

    op.create_table(
        'websites',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('account_id', sa.UUID(), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('verification_token', sa.String(length=64), nullable=True),
        sa.Column('verification_method', verification_method, nullable=True),
        sa.Column('api_key', sa.String(length=128), nullable=False,
                  comment='Public key used by the consent banner; immutable'),
        sa.Column('last_scan_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_scan_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE',
                                name=op.f('fk_websites_account_id_accounts')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_websites')),
        sa.UniqueConstraint('account_id', 'domain', name=op.f('uq_websites_account_id_domain')),
        sa.UniqueConstraint('api_key', name=op.f('uq_websites_api_key')),
        sa.UniqueConstraint('verification_token', name=op.f('uq_websites_verification_token')),
    )
    op.create_index(op.f('ix_websites_account_id'), 'websites', ['account_id'])

    op.create_table(
        'cookies',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('website_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('category', cookie_category, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('expiry', sa.String(length=64), nullable=True),
        sa.Column('path', sa.String(length=255), server_default='/', nullable=False),
        sa.Column('secure', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('http_only', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('same_site', same_site_policy, nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['website_id'], ['websites.id'], ondelete='CASCADE',
                                name=op.f('fk_cookies_website_id_websites')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_cookies')),
        sa.UniqueConstraint('website_id', 'name', 'domain',
                            name=op.f('uq_cookies_website_id_name_domain')),
    )
    op.create_index(op.f('ix_cookies_website_id'), 'cookies', ['website_id'])
    op.create_index(op.f('ix_cookies_category'), 'cookies', ['category'])

    op.create_table(
        'consents',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('account_id', sa.UUID(), nullable=False),
        sa.Column('website_id', sa.UUID(), nullable=False),
        sa.Column('visitor_id', sa.String(length=255), nullable=False),
        sa.Column('consent_given_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ip_address_hash', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('consent_choices', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('consent_method', consent_method, nullable=False),
        sa.Column('consent_version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('withdrawn_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE',
                                name=op.f('fk_consents_account_id_accounts')),
        sa.ForeignKeyConstraint(['website_id'], ['websites.id'], ondelete='CASCADE',
                                name=op.f('fk_consents_website_id_websites')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_consents')),
    )
    op.create_index(op.f('ix_consents_account_id'), 'consents', ['account_id'])
    op.create_index(op.f('ix_consents_visitor_id'), 'consents', ['visitor_id'])
    op.create_index(op.f('ix_consents_consent_given_at'), 'consents', ['consent_given_at'])
    op.create_index(op.f('ix_consents_withdrawn_at'), 'consents', ['withdrawn_at'])
    op.create_index('ix_consents_website_given_at', 'consents', ['website_id', 'consent_given_at'])
    op.create_index('ix_consents_consent_choices', 'consents', ['consent_choices'],
                    postgresql_using='gin')


def downgrade() -> None:
    """Drop the consent registry schema."""
    op.drop_table('consents')
    op.drop_table('cookies')
    op.drop_table('websites')
    op.drop_table('api_keys')
    op.drop_table('accounts')

    bind = op.get_bind()
    for enum_type in (consent_method, same_site_policy, cookie_category, verification_method):
        enum_type.drop(bind, checkfirst=True)
