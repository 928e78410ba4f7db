"""users, vehicles, bids, bookings, email outbox, audit log

Revision ID: 0001_bids_bookings
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_bids_bookings"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("base_price", sa.Float(), nullable=False),
        sa.Column("base_price_outstation", sa.Float(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"])
    op.create_index("ix_vehicles_status", "vehicles", ["status"])

    op.create_table(
        "bids",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("submission_id", sa.String(length=64), nullable=False),
        sa.Column("vehicle_id", sa.String(length=36), nullable=False),
        sa.Column("vehicle_title", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("vehicle_base_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_base_price_outstation", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_images", sa.JSON(), nullable=False),
        sa.Column("bidder_id", sa.String(length=36), nullable=False),
        sa.Column("bidder_name", sa.String(length=200), nullable=False),
        sa.Column("bidder_email", sa.String(length=320), nullable=False),
        sa.Column("bidder_govt_id", sa.String(length=100), nullable=False),
        sa.Column("seller_id", sa.String(length=36), nullable=False),
        sa.Column("seller_name", sa.String(length=200), nullable=False),
        sa.Column("seller_email", sa.String(length=320), nullable=False),
        sa.Column("seller_phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("bid_amount", sa.Float(), nullable=False),
        sa.Column("bid_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("booking_start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("booking_end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_outstation", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("bid_message", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("response_message", sa.Text(), nullable=False, server_default=""),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("bidder_id", "submission_id", name="uq_bids_bidder_submission"),
        sa.CheckConstraint("booking_end_date >= booking_start_date", name="ck_bids_date_range"),
        sa.CheckConstraint(
            "status IN ('pending','accepted','rejected','expired','converted')", name="ck_bids_status"
        ),
    )
    op.create_index("ix_bids_submission_id", "bids", ["submission_id"])
    op.create_index("ix_bids_vehicle_id", "bids", ["vehicle_id"])
    op.create_index("ix_bids_bidder_id", "bids", ["bidder_id"])
    op.create_index("ix_bids_seller_id", "bids", ["seller_id"])
    op.create_index("ix_bids_status", "bids", ["status"])
    op.create_index("ix_bids_booking_start_date", "bids", ["booking_start_date"])
    op.create_index("ix_bids_booking_end_date", "bids", ["booking_end_date"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("vehicle_id", sa.String(length=36), nullable=False),
        sa.Column("bid_id", sa.String(length=36), nullable=True),
        sa.Column("vehicle_title", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("vehicle_base_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_base_price_outstation", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_images", sa.JSON(), nullable=False),
        sa.Column("renter_id", sa.String(length=36), nullable=False),
        sa.Column("renter_name", sa.String(length=200), nullable=False),
        sa.Column("renter_email", sa.String(length=320), nullable=False),
        sa.Column("renter_phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("seller_id", sa.String(length=36), nullable=False),
        sa.Column("seller_name", sa.String(length=200), nullable=False),
        sa.Column("seller_email", sa.String(length=320), nullable=False),
        sa.Column("seller_phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("booking_start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("booking_end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_outstation", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("price_per_day", sa.Float(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("initial_odometer_reading", sa.Integer(), nullable=True),
        sa.Column("final_odometer_reading", sa.Integer(), nullable=True),
        sa.Column("trip_start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trip_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("extra_charges", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_km", sa.Integer(), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=500), nullable=True),
        sa.Column("cancellation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_rating", sa.Integer(), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("review_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("bid_id", name="uq_bookings_bid_id"),
        sa.CheckConstraint(
            "status IN ('pending','confirmed','in_progress','cancelled','completed')", name="ck_bookings_status"
        ),
        sa.CheckConstraint(
            "final_odometer_reading IS NULL OR final_odometer_reading >= initial_odometer_reading",
            name="ck_bookings_odometer",
        ),
    )
    op.create_index("ix_bookings_vehicle_id", "bookings", ["vehicle_id"])
    op.create_index("ix_bookings_renter_id", "bookings", ["renter_id"])
    op.create_index("ix_bookings_seller_id", "bookings", ["seller_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_booking_start_date", "bookings", ["booking_start_date"])
    op.create_index("ix_bookings_booking_end_date", "bookings", ["booking_end_date"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("kind", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("related_entity_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])
    op.create_index("ix_email_logs_status", "email_logs", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])

def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("email_logs")
    op.drop_table("bookings")
    op.drop_table("bids")
    op.drop_table("vehicles")
    op.drop_table("users")
