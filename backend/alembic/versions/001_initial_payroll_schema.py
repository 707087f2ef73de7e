"""Initial payroll schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Companies (one per owner wallet)
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('ens_domain', sa.String(length=255), nullable=False),
        sa.Column('ens_node', sa.String(length=66), nullable=True),
        sa.Column('owner_wallet', sa.String(length=42), nullable=False),
        sa.Column('ens_transaction_hash', sa.String(length=66), nullable=True),
        sa.Column('ens_block_number', sa.Integer(), nullable=True),
        sa.Column('ens_gas_used', sa.Integer(), nullable=True),
        sa.Column('ens_registration_confirmed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
    op.create_index(op.f('ix_companies_ens_domain'), 'companies', ['ens_domain'], unique=True)
    op.create_index(op.f('ix_companies_owner_wallet'), 'companies', ['owner_wallet'], unique=True)

    # Employees
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('start_date', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('employment_type', sa.String(length=20), nullable=False, server_default='full-time'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('wallet_address', sa.String(length=42), nullable=False),
        sa.Column('salary_amount', sa.String(length=78), nullable=False),
        sa.Column('payment_frequency', sa.String(length=20), nullable=False, server_default='MONTHLY'),
        sa.Column('preferred_token', sa.String(length=10), nullable=False, server_default='ETH'),
        sa.Column('last_payment_at', sa.DateTime(), nullable=True),
        sa.Column('ens_subdomain', sa.String(length=63), nullable=True),
        sa.Column('ens_full_domain', sa.String(length=255), nullable=True),
        sa.Column('ens_node', sa.String(length=66), nullable=True),
        sa.Column('ens_resolver_address', sa.String(length=42), nullable=True),
        sa.Column('tax_id', sa.String(length=50), nullable=True),
        sa.Column('tax_withholdings', sa.String(length=78), nullable=False, server_default='0'),
        sa.Column('tax_jurisdiction', sa.String(length=100), nullable=True),
        sa.Column('tax_exempt', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('contract_address', sa.String(length=42), nullable=True),
        sa.Column('transaction_hash', sa.String(length=66), nullable=True),
        sa.Column('block_number', sa.Integer(), nullable=True),
        sa.Column('gas_used', sa.String(length=78), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', sa.String(length=42), nullable=True),
        sa.Column('updated_by', sa.String(length=42), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_employees_id'), 'employees', ['id'], unique=False)
    op.create_index(op.f('ix_employees_company_id'), 'employees', ['company_id'], unique=False)
    op.create_index(op.f('ix_employees_department'), 'employees', ['department'], unique=False)
    op.create_index(op.f('ix_employees_is_active'), 'employees', ['is_active'], unique=False)
    op.create_index(op.f('ix_employees_wallet_address'), 'employees', ['wallet_address'], unique=True)
    op.create_index(op.f('ix_employees_ens_subdomain'), 'employees', ['ens_subdomain'], unique=False)
    op.create_index('ix_employees_company_active', 'employees', ['company_id', 'is_active'], unique=False)

    # Bonuses (pending -> distributed)
    op.create_table(
        'bonuses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('employee_name', sa.String(length=100), nullable=True),
        sa.Column('amount', sa.String(length=78), nullable=False),
        sa.Column('token_address', sa.String(length=42), nullable=False),
        sa.Column('token_symbol', sa.String(length=10), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('transaction_hash', sa.String(length=66), nullable=True),
        sa.Column('distribution_date', sa.DateTime(), nullable=True),
        sa.Column('distributed_by', sa.String(length=42), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', sa.String(length=42), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_by', sa.String(length=42), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bonuses_id'), 'bonuses', ['id'], unique=False)
    op.create_index(op.f('ix_bonuses_employee_id'), 'bonuses', ['employee_id'], unique=False)
    op.create_index(op.f('ix_bonuses_status'), 'bonuses', ['status'], unique=False)

    # Payment records
    op.create_table(
        'payment_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('employee_name', sa.String(length=100), nullable=True),
        sa.Column('wallet_address', sa.String(length=42), nullable=False),
        sa.Column('amount', sa.String(length=78), nullable=False),
        sa.Column('token', sa.String(length=10), nullable=False, server_default='ETH'),
        sa.Column('transaction_hash', sa.String(length=66), nullable=False),
        sa.Column('paid_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('processed_by', sa.String(length=42), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payment_records_id'), 'payment_records', ['id'], unique=False)
    op.create_index(op.f('ix_payment_records_employee_id'), 'payment_records', ['employee_id'], unique=False)
    op.create_index(op.f('ix_payment_records_company_id'), 'payment_records', ['company_id'], unique=False)
    op.create_index(op.f('ix_payment_records_transaction_hash'), 'payment_records', ['transaction_hash'], unique=False)
    op.create_index('ix_payment_records_company_paid', 'payment_records', ['company_id', 'paid_at'], unique=False)

    # ENS subdomain registry
    op.create_table(
        'ens_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subdomain', sa.String(length=63), nullable=False),
        sa.Column('full_domain', sa.String(length=255), nullable=False),
        sa.Column('owner', sa.String(length=42), nullable=False),
        sa.Column('resolver', sa.String(length=42), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', sa.String(length=42), nullable=True),
        sa.Column('transferred_at', sa.DateTime(), nullable=True),
        sa.Column('transferred_by', sa.String(length=42), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('full_domain')
    )
    op.create_index(op.f('ix_ens_records_id'), 'ens_records', ['id'], unique=False)
    op.create_index(op.f('ix_ens_records_subdomain'), 'ens_records', ['subdomain'], unique=True)
    op.create_index(op.f('ix_ens_records_owner'), 'ens_records', ['owner'], unique=False)


def downgrade() -> None:
    op.drop_table('ens_records')
    op.drop_table('payment_records')
    op.drop_table('bonuses')
    op.drop_table('employees')
    op.drop_table('companies')
