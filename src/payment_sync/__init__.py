# payment_sync package
__version__ = "0.1.0"

from .clients import (
    Invoice,
    InvoiceStatus,
    Order,
    SevdeskClient,
    ShopifyClient,
)
from .database import (
    NotificationHistory,
    NotificationStatus,
    NotificationType,
    NotificationLog,
    init_db,
    close_db,
    get_db,
)
from .sync import (
    PaymentProcessor,
    Poller,
    EmailNotifier,
    extract_order_reference,
)
