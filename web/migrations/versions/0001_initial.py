"""Create profiles, referrals and the referral_validation view

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Advisors; a referral code belongs to at most one profile
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('mobile_no', sa.String(length=16), nullable=False),
        sa.Column('rm_name', sa.String(length=120), nullable=True),
        sa.Column('referral_code', sa.String(length=3), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('referral_code'),
    )

    # Prospect submissions
    op.create_table(
        'referrals',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('referrer_user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('mobile_no', sa.String(length=16), nullable=False),
        sa.Column('residency_pincode', sa.String(length=6), nullable=False),
        sa.Column('employment_type', sa.String(length=16), nullable=False, comment='salaried | self-employed'),
        sa.Column('employer_name', sa.String(length=200), nullable=True),
        sa.Column('monthly_net_income', sa.Numeric(12, 2), nullable=False),
        sa.Column('referral_code', sa.String(length=3), nullable=True),
        sa.Column('terms_accepted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, comment='InProgress | Approved | Decline'),
        sa.Column('processed_by', sa.String(length=36), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['referrer_user_id'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['processed_by'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_referrals_referrer_user_id', 'referrals', ['referrer_user_id'], unique=False)
    op.create_index('ix_referrals_referral_code', 'referrals', ['referral_code'], unique=False)
    op.create_index('ix_referrals_status', 'referrals', ['status'], unique=False)

    # Code ownership projection used by the public apply form
    op.execute(
        "CREATE VIEW referral_validation AS "
        "SELECT id, name, referral_code FROM profiles "
        "WHERE referral_code IS NOT NULL"
    )


def downgrade():
    op.execute("DROP VIEW IF EXISTS referral_validation")
    op.drop_index('ix_referrals_status', table_name='referrals')
    op.drop_index('ix_referrals_referral_code', table_name='referrals')
    op.drop_index('ix_referrals_referrer_user_id', table_name='referrals')
    op.drop_table('referrals')
    op.drop_table('profiles')
