"""forms, rules, closing days, slots and appointments

Revision ID: 0001
Revises:
Create Date: 2024-01-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "forms",
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "week_definitions",
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date_of_apply", sa.Date(), nullable=False),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("form_id", "date_of_apply"),
    )

    op.create_table(
        "working_days",
        sa.Column(
            "week_definition_id",
            sa.Integer(),
            sa.ForeignKey("week_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("week_definition_id", "day_of_week"),
    )

    op.create_table(
        "time_slots",
        sa.Column(
            "working_day_id",
            sa.Integer(),
            sa.ForeignKey("working_days.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("starting_time", sa.Time(), nullable=False),
        sa.Column("ending_time", sa.Time(), nullable=False),
        sa.Column("is_open", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("working_day_id", "starting_time"),
    )

    op.create_table(
        "reservation_rules",
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date_of_apply", sa.Date(), nullable=False),
        sa.Column("max_capacity_per_slot", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("max_people_per_appointment", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("min_hours_before_appointment", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_appointments_per_user", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("nb_days_for_max_appointments_per_user", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("nb_days_between_appointments", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("form_id", "date_of_apply"),
    )

    op.create_table(
        "closing_days",
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date_of_closing_day", sa.Date(), nullable=False),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("form_id", "date_of_closing_day"),
    )

    op.create_table(
        "slots",
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("starting_date_time", sa.DateTime(), nullable=False),
        sa.Column("ending_date_time", sa.DateTime(), nullable=False),
        sa.Column("is_open", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_specific", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("nb_remaining_places", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("nb_potential_remaining_places", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("nb_places_taken", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.UniqueConstraint("form_id", "starting_date_time"),
        sa.UniqueConstraint("form_id", "ending_date_time"),
    )

    op.create_table(
        "appointments",
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id", ondelete="CASCADE"), nullable=False),
        sa.Column("nb_booked_seats", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_cancelled", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer()),
        sa.Column("created_at", sa.Text(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )


def downgrade():
    op.drop_table("appointments")
    op.drop_table("slots")
    op.drop_table("closing_days")
    op.drop_table("reservation_rules")
    op.drop_table("time_slots")
    op.drop_table("working_days")
    op.drop_table("week_definitions")
    op.drop_table("forms")
