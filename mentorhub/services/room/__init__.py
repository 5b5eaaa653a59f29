"""Circle room services."""

from mentorhub.services.room.room_service import RoomService

__all__ = ["RoomService"]
