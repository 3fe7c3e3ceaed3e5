"""SQLAlchemy models for the API marketplace.

All models are imported here so that ``Base.metadata`` sees every table
(``create_all`` in tests relies on it). If you add a new model, import it in
this file.
"""

from marketplace.models.billing import BillingReceipt, BillingStatus, PaymentMethod
from marketplace.models.documentation import Endpoint, Operation, RestMethod, ServiceVersion
from marketplace.models.notification import Notification
from marketplace.models.service import Service, ServiceOwner, Tag, service_tags
from marketplace.models.subscription import ServiceConsumer, SubscriptionStatus, SubscriptionTier
from marketplace.models.user import User

__all__ = [
    "BillingReceipt",
    "BillingStatus",
    "Endpoint",
    "Notification",
    "Operation",
    "PaymentMethod",
    "RestMethod",
    "Service",
    "ServiceConsumer",
    "ServiceOwner",
    "ServiceVersion",
    "SubscriptionStatus",
    "SubscriptionTier",
    "Tag",
    "User",
    "service_tags",
]
