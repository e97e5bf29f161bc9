"""initial schema: settings, domains, senders

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("main_hostname", sa.String(255), nullable=False),
        sa.Column("main_server_ip", sa.String(64), nullable=False),
        sa.Column("relay_ips", sa.Text(), nullable=False),
        sa.Column("smtp_listen_addr", sa.String(255), nullable=False),
        sa.Column("ai_provider", sa.String(50), nullable=False),
        sa.Column("ai_api_key", sa.Text(), nullable=False),
        sa.Column("webhook_url", sa.String(500), nullable=False),
        sa.Column("webhook_enabled", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "domains",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("mail_host", sa.String(255), nullable=False),
        sa.Column("bounce_host", sa.String(255), nullable=False),
        sa.Column("dmarc_policy", sa.String(20), nullable=False),
        sa.Column("dmarc_rua", sa.String(255), nullable=False),
        sa.Column("dmarc_ruf", sa.String(255), nullable=False),
        sa.Column("dmarc_percentage", sa.Integer(), nullable=False),
    )

    op.create_table(
        "senders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "domain_id",
            sa.Integer(),
            sa.ForeignKey("domains.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("local_part", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("ip", sa.String(64), nullable=False),
        sa.Column("warmup_enabled", sa.Boolean(), nullable=False),
        sa.Column(
            "warmup_plan",
            sa.Enum("CONSERVATIVE", "STANDARD", "AGGRESSIVE", name="warmup_plan"),
            nullable=False,
        ),
        sa.Column("warmup_day", sa.Integer(), nullable=False),
        sa.Column("warmup_last_update", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("domain_id", "local_part", name="uq_senders_domain_local_part"),
    )
    op.create_index("ix_senders_domain_id", "senders", ["domain_id"])


def downgrade() -> None:
    op.drop_index("ix_senders_domain_id", table_name="senders")
    op.drop_table("senders")
    op.drop_table("domains")
    op.drop_table("app_settings")
    sa.Enum(name="warmup_plan").drop(op.get_bind(), checkfirst=True)
