"""initial payment ledger, arrears and promotions

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c2e3f4b5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('paystack_secret_key', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('full_name', sa.String(length=160), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_school_id'), ['school_id'], unique=False)

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('student_id_display', sa.String(length=32), nullable=False),
        sa.Column('full_name', sa.String(length=160), nullable=False),
        sa.Column('grade_level', sa.String(length=32), nullable=False),
        sa.Column('guardian_contact', sa.String(length=32), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('total_paid_override', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('school_id', 'student_id_display', name='uq_students_school_display_id')
    )
    with op.batch_alter_table('students', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_students_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_students_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_students_student_id_display'), ['student_id_display'], unique=False)
        batch_op.create_index(batch_op.f('ix_students_contact_email'), ['contact_email'], unique=False)

    op.create_table(
        'school_fee_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('grade_level', sa.String(length=32), nullable=False),
        sa.Column('term', sa.String(length=32), nullable=False),
        sa.Column('academic_year', sa.String(length=9), nullable=False),
        sa.Column('description', sa.String(length=160), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('school_fee_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_school_fee_items_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_school_fee_items_academic_year'), ['academic_year'], unique=False)

    op.create_table(
        'fee_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('payment_reference', sa.String(length=128), nullable=False),
        sa.Column('student_id_display', sa.String(length=32), nullable=False),
        sa.Column('student_name', sa.String(length=160), nullable=False),
        sa.Column('grade_level', sa.String(length=32), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('gateway_fees', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=False),
        sa.Column('method', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('term_paid_for', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('received_by_name', sa.String(length=160), nullable=True),
        sa.Column('received_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_reference')
    )
    with op.batch_alter_table('fee_payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_fee_payments_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_fee_payments_student_id_display'), ['student_id_display'], unique=False)
        batch_op.create_index(batch_op.f('ix_fee_payments_paid_at'), ['paid_at'], unique=False)

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('student_id_display', sa.String(length=32), nullable=True),
        sa.Column('gateway', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('platform_fee', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('gateway_response', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference', 'status', name='uq_payment_transactions_reference_status')
    )
    with op.batch_alter_table('payment_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_transactions_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_transactions_reference'), ['reference'], unique=False)

    op.create_table(
        'platform_revenue',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('gateway', sa.String(length=32), nullable=False),
        sa.Column('total_revenue', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('month', 'currency', 'gateway', name='uq_platform_revenue_month_currency_gateway')
    )

    op.create_table(
        'platform_configuration',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stripe_secret_key', sa.String(length=255), nullable=True),
        sa.Column('stripe_webhook_secret', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'student_arrears',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('student_id_display', sa.String(length=32), nullable=False),
        sa.Column('student_name', sa.String(length=160), nullable=False),
        sa.Column('grade_level_at_arrear', sa.String(length=32), nullable=True),
        sa.Column('academic_year_from', sa.String(length=9), nullable=False),
        sa.Column('academic_year_to', sa.String(length=9), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('student_arrears', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_student_arrears_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_student_arrears_student_id_display'), ['student_id_display'], unique=False)

    op.create_table(
        'student_promotions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('academic_year', sa.String(length=9), nullable=False),
        sa.Column('from_grade', sa.String(length=32), nullable=False),
        sa.Column('to_grade', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'academic_year', name='uq_student_promotions_student_year')
    )
    with op.batch_alter_table('student_promotions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_student_promotions_school_id'), ['school_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_student_promotions_student_id'), ['student_id'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Integer(), nullable=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('table_name', sa.String(length=64), nullable=True),
        sa.Column('record_id', sa.String(length=128), nullable=True),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_school_id'), ['school_id'], unique=False)


def downgrade():
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_audit_logs_school_id'))
    op.drop_table('audit_logs')

    with op.batch_alter_table('student_promotions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_student_promotions_student_id'))
        batch_op.drop_index(batch_op.f('ix_student_promotions_school_id'))
    op.drop_table('student_promotions')

    with op.batch_alter_table('student_arrears', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_student_arrears_student_id_display'))
        batch_op.drop_index(batch_op.f('ix_student_arrears_school_id'))
    op.drop_table('student_arrears')

    op.drop_table('platform_configuration')
    op.drop_table('platform_revenue')

    with op.batch_alter_table('payment_transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_payment_transactions_reference'))
        batch_op.drop_index(batch_op.f('ix_payment_transactions_school_id'))
    op.drop_table('payment_transactions')

    with op.batch_alter_table('fee_payments', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_fee_payments_paid_at'))
        batch_op.drop_index(batch_op.f('ix_fee_payments_student_id_display'))
        batch_op.drop_index(batch_op.f('ix_fee_payments_school_id'))
    op.drop_table('fee_payments')

    with op.batch_alter_table('school_fee_items', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_school_fee_items_academic_year'))
        batch_op.drop_index(batch_op.f('ix_school_fee_items_school_id'))
    op.drop_table('school_fee_items')

    with op.batch_alter_table('students', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_students_contact_email'))
        batch_op.drop_index(batch_op.f('ix_students_student_id_display'))
        batch_op.drop_index(batch_op.f('ix_students_user_id'))
        batch_op.drop_index(batch_op.f('ix_students_school_id'))
    op.drop_table('students')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_school_id'))
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')

    op.drop_table('schools')
