"""Initial refurb operations schema.

- users
- racks
- purchase_orders
- inward_batches
- outward_records
- devices
- stock_movements
- spare_parts
- repair_jobs
- paint_panels
- l3_repair_jobs / display_repair_jobs / battery_boost_jobs
- checklist_items
- qc_records
- activity_logs

Column types are portable so the same revision runs on PostgreSQL and SQLite.
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "4c1d2e8f9a10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _base_columns() -> List[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_ref(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def _device_ref() -> sa.Column:
    return sa.Column("device_id", sa.Uuid(), sa.ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)


def _flag(name: str) -> sa.Column:
    return sa.Column(name, sa.Boolean(), server_default=sa.false(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "racks",
        *_base_columns(),
        sa.Column("rack_code", sa.Text(), nullable=False),
        sa.Column("stage", sa.Text(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.UniqueConstraint("rack_code", name="uq_racks_rack_code"),
    )
    op.create_index("ix_racks_stage", "racks", ["stage"])

    op.create_table(
        "purchase_orders",
        *_base_columns(),
        sa.Column("po_number", sa.Text(), nullable=False),
        sa.Column("supplier_code", sa.Text(), nullable=True),
        sa.Column("supplier_name", sa.Text(), nullable=False),
        sa.Column("expected_devices", sa.Integer(), nullable=False),
        sa.Column("expected_items", JSON, nullable=False),
        sa.Column("pdf_url", sa.Text(), nullable=True),
        sa.Column("is_addressed", sa.Boolean(), server_default=sa.false(), nullable=False),
        _user_ref("created_by_id"),
        sa.UniqueConstraint("po_number", name="uq_purchase_orders_po_number"),
    )

    op.create_table(
        "inward_batches",
        *_base_columns(),
        sa.Column("batch_id", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("po_invoice_no", sa.Text(), nullable=True),
        sa.Column("supplier", sa.Text(), nullable=True),
        sa.Column("customer", sa.Text(), nullable=True),
        sa.Column("rental_ref", sa.Text(), nullable=True),
        sa.Column("email_subject", sa.Text(), nullable=True),
        _user_ref("created_by_id"),
        sa.Column(
            "purchase_order_id",
            sa.Uuid(),
            sa.ForeignKey("purchase_orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("vehicle_number", sa.Text(), nullable=True),
        sa.Column("driver_name", sa.Text(), nullable=True),
        sa.Column("delivery_challan_url", sa.Text(), nullable=True),
        sa.Column("verification_status", sa.Text(), nullable=False),
        sa.Column("verification_result", JSON, nullable=True),
        sa.Column("override_reason", sa.Text(), nullable=True),
        sa.UniqueConstraint("batch_id", name="uq_inward_batches_batch_id"),
    )
    op.create_index("ix_inward_batches_purchase_order_id", "inward_batches", ["purchase_order_id"])

    op.create_table(
        "outward_records",
        *_base_columns(),
        sa.Column("outward_id", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("customer", sa.Text(), nullable=False),
        sa.Column("reference", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("shipping_details", sa.Text(), nullable=True),
        _user_ref("packed_by_id"),
        _user_ref("checked_by_id"),
        sa.UniqueConstraint("outward_id", name="uq_outward_records_outward_id"),
    )

    attribute_columns = [
        "cpu", "ram", "ssd", "gpu", "screen_size",
        "form_factor", "raid_controller", "network_ports",
        "monitor_size", "resolution", "panel_type", "refresh_rate", "monitor_ports",
        "storage_type", "capacity", "storage_form_factor", "interface", "rpm",
        "nic_speed", "port_count", "connector_type", "nic_interface", "bracket_type",
    ]
    op.create_table(
        "devices",
        *_base_columns(),
        sa.Column("barcode", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("brand", sa.Text(), nullable=False),
        sa.Column("model", sa.Text(), nullable=False),
        *[sa.Column(name, sa.Text(), nullable=True) for name in attribute_columns],
        sa.Column("serial", sa.Text(), nullable=True),
        sa.Column("condition_notes", sa.Text(), nullable=True),
        sa.Column("ownership", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("grade", sa.Text(), nullable=True),
        _flag("repair_required"),
        _flag("repair_completed"),
        _flag("paint_required"),
        _flag("paint_completed"),
        _flag("display_repair_required"),
        _flag("display_repair_completed"),
        _flag("battery_boost_required"),
        _flag("battery_boost_completed"),
        _flag("l3_repair_required"),
        _flag("l3_repair_completed"),
        sa.Column("inward_batch_id", sa.Uuid(), sa.ForeignKey("inward_batches.id", ondelete="SET NULL"), nullable=True),
        sa.Column("outward_record_id", sa.Uuid(), sa.ForeignKey("outward_records.id", ondelete="SET NULL"), nullable=True),
        sa.Column("rack_id", sa.Uuid(), sa.ForeignKey("racks.id", ondelete="SET NULL"), nullable=True),
        sa.UniqueConstraint("barcode", name="uq_devices_barcode"),
    )
    for column in ("category", "status", "inward_batch_id", "outward_record_id", "rack_id"):
        op.create_index(f"ix_devices_{column}", "devices", [column])

    op.create_table(
        "stock_movements",
        *_base_columns(),
        _device_ref(),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("from_location", sa.Text(), nullable=True),
        sa.Column("to_location", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=True),
        _user_ref("user_id"),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_stock_movements_device_id", "stock_movements", ["device_id"])

    op.create_table(
        "spare_parts",
        *_base_columns(),
        sa.Column("part_code", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("compatible_models", sa.Text(), nullable=True),
        sa.Column("min_stock", sa.Integer(), nullable=False),
        sa.Column("max_stock", sa.Integer(), nullable=False),
        sa.Column("current_stock", sa.Integer(), nullable=False),
        sa.Column("bin_location", sa.Text(), nullable=True),
        sa.UniqueConstraint("part_code", name="uq_spare_parts_part_code"),
    )

    op.create_table(
        "repair_jobs",
        *_base_columns(),
        sa.Column("job_id", sa.Text(), nullable=False),
        _device_ref(),
        _user_ref("inspection_eng_id"),
        _user_ref("repair_eng_id"),
        _user_ref("l2_engineer_id"),
        sa.Column("reported_issues", sa.Text(), nullable=True),
        sa.Column("root_cause", sa.Text(), nullable=True),
        sa.Column("spares_required", sa.Text(), nullable=True),
        sa.Column("spares_issued", sa.Text(), nullable=True),
        sa.Column("repair_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("repair_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tat_due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("job_id", name="uq_repair_jobs_job_id"),
    )
    op.create_index("ix_repair_jobs_device_id", "repair_jobs", ["device_id"])
    op.create_index("ix_repair_jobs_status", "repair_jobs", ["status"])

    op.create_table(
        "paint_panels",
        *_base_columns(),
        _device_ref(),
        sa.Column("panel_type", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        _user_ref("technician_id"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_paint_panels_device_id", "paint_panels", ["device_id"])
    op.create_index("ix_paint_panels_status", "paint_panels", ["status"])

    def parallel_columns() -> List[sa.Column]:
        return [
            _device_ref(),
            sa.Column("status", sa.Text(), nullable=False),
            _user_ref("assigned_to_id"),
            sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        ]

    op.create_table(
        "l3_repair_jobs",
        *_base_columns(),
        *parallel_columns(),
        sa.Column("issue_type", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("resolution", sa.Text(), nullable=True),
    )
    op.create_table(
        "display_repair_jobs",
        *_base_columns(),
        *parallel_columns(),
        sa.Column("reported_issues", sa.Text(), nullable=True),
        _flag("completed_by_l2"),
    )
    op.create_table(
        "battery_boost_jobs",
        *_base_columns(),
        *parallel_columns(),
        sa.Column("initial_capacity", sa.Text(), nullable=True),
        sa.Column("target_capacity", sa.Text(), nullable=True),
        sa.Column("final_capacity", sa.Text(), nullable=True),
        _flag("completed_by_l2"),
    )
    for table in ("l3_repair_jobs", "display_repair_jobs", "battery_boost_jobs"):
        op.create_index(f"ix_{table}_device_id", table, ["device_id"])
        op.create_index(f"ix_{table}_status", table, ["status"])

    op.create_table(
        "checklist_items",
        *_base_columns(),
        _device_ref(),
        sa.Column("item_index", sa.Integer(), nullable=False),
        sa.Column("item_text", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("device_id", "item_index", name="uq_checklist_items_device_index"),
    )
    op.create_index("ix_checklist_items_device_id", "checklist_items", ["device_id"])

    op.create_table(
        "qc_records",
        *_base_columns(),
        _device_ref(),
        _user_ref("qc_eng_id"),
        sa.Column("checklist_results", sa.Text(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("final_grade", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_qc_records_device_id", "qc_records", ["device_id"])

    op.create_table(
        "activity_logs",
        *_base_columns(),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        _user_ref("user_id"),
        sa.Column("metadata", JSON, nullable=True),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    for table in [
        "activity_logs",
        "qc_records",
        "checklist_items",
        "battery_boost_jobs",
        "display_repair_jobs",
        "l3_repair_jobs",
        "paint_panels",
        "repair_jobs",
        "spare_parts",
        "stock_movements",
        "devices",
        "outward_records",
        "inward_batches",
        "purchase_orders",
        "racks",
        "users",
    ]:
        op.drop_table(table)
