"""
ORM models for users, receiving, devices, repair and paint work, quality,
dispatch, spares, stored documents and the activity log.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .security import User  # noqa: F401
from .procurement import (  # noqa: F401
    PurchaseOrder,
    InwardBatch,
)
from .inventory import (  # noqa: F401
    Rack,
    Device,
    StockMovement,
    SparePart,
)
from .repair import (  # noqa: F401
    RepairJob,
    PaintPanel,
    L3RepairJob,
    DisplayRepairJob,
    BatteryBoostJob,
)
from .quality import (  # noqa: F401
    ChecklistItem,
    QCRecord,
)
from .outward import OutwardRecord  # noqa: F401
from .activity import ActivityLog  # noqa: F401
from .storage import StoredDocument  # noqa: F401
