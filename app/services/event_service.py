import logging
from typing import Dict, Any
from datetime import datetime, timezone
import uuid

from ..utils.redis_client import redis_client

logger = logging.getLogger(__name__)


class EventService:
    """Publish domain events via Redis"""

    # Event channels
    RIDE_EVENTS_CHANNEL = "ride-events"
    MATCH_EVENTS_CHANNEL = "match-events"
    USER_NOTIFICATIONS_CHANNEL = "user-notifications"

    async def _publish(self, channel: str, event_type: str, event_data: Dict[str, Any]):
        event = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "carpool-companion",
            "data": event_data,
        }
        await redis_client.publish_event(channel, event)

    async def publish_ride_event(self, event_type: str, event_data: Dict[str, Any]):
        """Publish ride-related events"""
        try:
            await self._publish(self.RIDE_EVENTS_CHANNEL, event_type, event_data)
            logger.info(f"Published ride event: {event_type}")
        except Exception as e:
            logger.error(f"Failed to publish ride event: {e}")
            raise

    async def publish_match_event(self, event_type: str, event_data: Dict[str, Any]):
        """Publish match-related events"""
        try:
            await self._publish(self.MATCH_EVENTS_CHANNEL, event_type, event_data)
            logger.info(f"Published match event: {event_type}")
        except Exception as e:
            logger.error(f"Failed to publish match event: {e}")
            raise

    async def publish_user_notification(self, user_id: str, notification_data: Dict[str, Any]):
        """Publish notification to specific user"""
        try:
            notification = {
                "notification_id": str(uuid.uuid4()),
                "recipient_id": user_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "data": notification_data,
            }
            await redis_client.publish_event(self.USER_NOTIFICATIONS_CHANNEL, notification)
            logger.info(f"Published user notification to {user_id}")

        except Exception as e:
            logger.error(f"Failed to publish user notification: {e}")
            raise

    # Specific event publishers for common scenarios

    async def notify_match_requested(self, match_data: Dict[str, Any]):
        """Notify the driver that a rider asked to join their ride"""
        await self.publish_match_event("match_requested", match_data)

        await self.publish_user_notification(
            match_data["driver_id"],
            {
                "type": "match_requested",
                "message": "A rider has requested to join your ride.",
                "ride_id": match_data["ride_id"],
                "match_id": match_data["match_id"],
            }
        )

    async def notify_match_status_updated(self, match_data: Dict[str, Any]):
        """Notify the rider when the driver answers their request"""
        await self.publish_match_event("match_status_updated", match_data)

        await self.publish_user_notification(
            match_data["rider_id"],
            {
                "type": f"match_{match_data['new_status']}",
                "message": f"Your ride request was {match_data['new_status']}.",
                "ride_id": match_data["ride_id"],
                "match_id": match_data["match_id"],
            }
        )

    async def notify_ride_status_updated(self, ride_data: Dict[str, Any]):
        """Notify when a ride changes status"""
        await self.publish_ride_event("ride_status_updated", ride_data)

    async def notify_wallet_reconciled(self, wallet_data: Dict[str, Any]):
        """Notify a user that their eco wallet was recomputed"""
        await self.publish_user_notification(
            wallet_data["user_id"],
            {
                "type": "wallet_updated",
                "eco_coins": wallet_data["eco_coins"],
                "rides_to_next_coin": wallet_data["rides_to_next_coin"],
            }
        )

    async def notify_wallets_reconciled(self, wallets: Dict[Any, Any]):
        """Notify every user whose wallet was just recomputed"""
        for user_id, wallet in wallets.items():
            await self.notify_wallet_reconciled({
                "user_id": str(user_id),
                "eco_coins": wallet.eco_coins,
                "rides_to_next_coin": wallet.rides_to_next_coin,
            })
