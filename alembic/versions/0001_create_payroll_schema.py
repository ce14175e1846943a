"""create payroll settlement schema

Revision ID: 0001_payroll_schema
Revises:
Create Date: 2025-01-06 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_payroll_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        "member",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("employee_number", sa.String(50), nullable=True),
        sa.Column("member_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_member_employee_number", "member", ["employee_number"], unique=True)

    op.create_table(
        "cooperative_setting",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_cooperative_setting_key", "cooperative_setting", ["key"], unique=True)

    op.create_table(
        "payroll_period",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("month", "year", name="uq_payroll_period_month_year"),
    )

    op.create_table(
        "member_application",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("member.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("entrance_fee", sa.Numeric(15, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("remaining_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("is_paid_off", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("installment_plan", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_member_application_member_id", "member_application", ["member_id"], unique=True)

    op.create_table(
        "savings_account",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("member.id"), nullable=False),
        sa.Column("account_number", sa.String(50), nullable=True, unique=True),
        sa.Column("principal_balance", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("mandatory_balance", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("voluntary_balance", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("interest_balance", sa.Numeric(15, 2), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_savings_account_member_id", "savings_account", ["member_id"], unique=True)

    op.create_table(
        "savings_transaction",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("savings_account_id", sa.Uuid(), sa.ForeignKey("savings_account.id"), nullable=False),
        sa.Column("payroll_period_id", sa.Uuid(), sa.ForeignKey("payroll_period.id"), nullable=False),
        sa.Column("registration_fee", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("mandatory_fee", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("deposit_installment", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("interest", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("cumulative_interest", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("withdrawal", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("profit_share", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("interest_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("savings_account_id", "payroll_period_id", name="uq_savings_transaction_account_period"),
    )
    op.create_index("ix_savings_transaction_savings_account_id", "savings_transaction", ["savings_account_id"])
    op.create_index("ix_savings_transaction_payroll_period_id", "savings_transaction", ["payroll_period_id"])

    op.create_table(
        "deposit_application",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("deposit_number", sa.String(50), nullable=False),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("member.id"), nullable=False),
        sa.Column("amount_value", sa.Numeric(15, 2), nullable=False),
        sa.Column("tenor_months", sa.Integer(), nullable=False),
        sa.Column("installment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("collected_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_deposit_application_deposit_number", "deposit_application", ["deposit_number"], unique=True)
    op.create_index("ix_deposit_application_member_id", "deposit_application", ["member_id"])

    op.create_table(
        "deposit_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("deposit_application_id", sa.Uuid(), sa.ForeignKey("deposit_application.id"), nullable=False),
        sa.Column("payroll_period_id", sa.Uuid(), sa.ForeignKey("payroll_period.id"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("amount_value", sa.Numeric(15, 2), nullable=False),
        sa.Column("tenor_months", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("action_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reversed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_deposit_history_deposit_application_id", "deposit_history", ["deposit_application_id"])
    op.create_index("ix_deposit_history_payroll_period_id", "deposit_history", ["payroll_period_id"])

    op.create_table(
        "loan_application",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("loan_number", sa.String(50), nullable=False),
        sa.Column("member_id", sa.Uuid(), sa.ForeignKey("member.id"), nullable=False),
        sa.Column("loan_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("loan_tenor", sa.Integer(), nullable=False),
        sa.Column("interest_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("monthly_installment", sa.Numeric(15, 2), nullable=True),
        sa.Column("total_repayment", sa.Numeric(15, 2), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("disbursed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_loan_application_loan_number", "loan_application", ["loan_number"], unique=True)
    op.create_index("ix_loan_application_member_id", "loan_application", ["member_id"])

    op.create_table(
        "loan_installment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("loan_application_id", sa.Uuid(), sa.ForeignKey("loan_application.id"), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("paid_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("payroll_period_id", sa.Uuid(), sa.ForeignKey("payroll_period.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("loan_application_id", "installment_number", name="uq_loan_installment_number"),
    )
    op.create_index("ix_loan_installment_loan_application_id", "loan_installment", ["loan_application_id"])
    op.create_index("ix_loan_installment_due_date", "loan_installment", ["due_date"])
    op.create_index("ix_loan_installment_payroll_period_id", "loan_installment", ["payroll_period_id"])

    op.create_table(
        "loan_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("loan_application_id", sa.Uuid(), sa.ForeignKey("loan_application.id"), nullable=False),
        sa.Column("payroll_period_id", sa.Uuid(), sa.ForeignKey("payroll_period.id"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("action_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reversed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_loan_history_loan_application_id", "loan_history", ["loan_application_id"])
    op.create_index("ix_loan_history_payroll_period_id", "loan_history", ["payroll_period_id"])


def downgrade():
    op.drop_table("loan_history")
    op.drop_table("loan_installment")
    op.drop_table("loan_application")
    op.drop_table("deposit_history")
    op.drop_table("deposit_application")
    op.drop_table("savings_transaction")
    op.drop_table("savings_account")
    op.drop_table("member_application")
    op.drop_table("payroll_period")
    op.drop_table("cooperative_setting")
    op.drop_table("member")
