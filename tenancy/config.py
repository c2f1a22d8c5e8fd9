# config.py
"""
Tenancy configuration for the store gateway.
Defines the scope header, the peer identifier prefix and pagination limits.
"""

import os

import dotenv

dotenv.load_dotenv()


class TenancyConfig:
    """Settings read from the environment at instance creation time"""

    def __init__(self):
        # Header carrying the tenant scope identifier
        self.store_id_header = os.getenv("STORE_ID_HEADER", "x-store-id").lower()

        # Peer commerce platform identifiers look like "store_01HQWE..."
        self.peer_id_prefix = os.getenv("PEER_ID_PREFIX", "store_")

        # Pagination
        self.default_page_size = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
        self.max_page_size = int(os.getenv("MAX_PAGE_SIZE", "100"))

        cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        self.cors_origins = [o.strip() for o in cors_origins.split(",") if o.strip()]


MEMBER_ROLES = ("owner", "admin", "editor", "viewer", "customer")

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "returned",
)

# Client-facing product status names mapped onto stored values
PRODUCT_STATUS_MAP = {
    "draft": "inactive",
    "published": "active",
    "proposed": "pending",
    "rejected": "archived",
}


def get_page_limit(requested, config: TenancyConfig = None, default: int = None) -> int:
    """Clamp a requested page size to the configured bounds"""
    config = config or TenancyConfig()
    if requested is None:
        requested = default or config.default_page_size
    return max(1, min(int(requested), config.max_page_size))


def validate_role(role: str) -> bool:
    """Validate if membership role exists"""
    return role in MEMBER_ROLES
