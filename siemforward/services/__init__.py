"""Service layer for configuration and service operations."""
from siemforward.services.block_manager import BlockManager
from siemforward.services.service_control import ServiceController

__all__ = ['BlockManager', 'ServiceController']
