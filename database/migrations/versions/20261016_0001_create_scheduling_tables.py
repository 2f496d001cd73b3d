"""create scheduling tables

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None

schedule_status = sa.Enum("draft", "generated", "approved", name="schedule_status")


def upgrade() -> None:
    op.create_table(
        "schedule_versions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("semester", sa.String(length=50), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=False),
        sa.Column("groups", sa.JSON(), nullable=False),
        sa.Column("total_sections", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conflicts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("capacity_warnings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expected_sections", sa.Integer(), nullable=True),
        sa.Column("efficiency", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", schedule_status, nullable=False, server_default="draft"),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_versions_level", "schedule_versions", ["level"])
    op.create_index("ix_schedule_versions_semester", "schedule_versions", ["semester"])

    op.create_table(
        "group_settings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("semester", sa.String(length=50), nullable=False),
        sa.Column("total_students", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("students_per_group", sa.Integer(), nullable=False),
        sa.Column("num_groups", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("group_names", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("level", "semester", name="uq_group_settings_level_semester"),
    )
    op.create_index("ix_group_settings_level", "group_settings", ["level"])
    op.create_index("ix_group_settings_semester", "group_settings", ["semester"])

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_number", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("is_irregular", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("group_name", sa.String(length=10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_students_student_number", "students", ["student_number"], unique=True)
    op.create_index("ix_students_level", "students", ["level"])

    op.create_table(
        "scheduling_policy",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("scheduling_policy")
    op.drop_index("ix_students_level", table_name="students")
    op.drop_index("ix_students_student_number", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_group_settings_semester", table_name="group_settings")
    op.drop_index("ix_group_settings_level", table_name="group_settings")
    op.drop_table("group_settings")
    op.drop_index("ix_schedule_versions_semester", table_name="schedule_versions")
    op.drop_index("ix_schedule_versions_level", table_name="schedule_versions")
    op.drop_table("schedule_versions")
    schedule_status.drop(op.get_bind(), checkfirst=True)
