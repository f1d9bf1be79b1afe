from .arp_table import router as arp_table_router

__all__ = [
    "arp_table_router",
]
