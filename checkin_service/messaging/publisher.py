"""Domain event publishing for check-in activity"""
import os
import json
import logging
from typing import Dict

import pika
from pika.exceptions import AMQPError

logger = logging.getLogger(__name__)


class RabbitMQPublisher:
    """Publishes JSON messages to a topic exchange"""

    def __init__(self):
        self.host = os.getenv("RABBITMQ_HOST")
        self.port = int(os.getenv("RABBITMQ_PORT", "5672"))
        self.user = os.getenv("RABBITMQ_USER", "guest")
        self.password = os.getenv("RABBITMQ_PASSWORD", "guest")
        self.exchange = os.getenv("RABBITMQ_EXCHANGE", "church.checkin.events")

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def publish(self, routing_key: str, message: Dict):
        credentials = pika.PlainCredentials(self.user, self.password)
        parameters = pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            credentials=credentials,
            heartbeat=600,
            blocked_connection_timeout=300
        )

        connection = pika.BlockingConnection(parameters)
        try:
            channel = connection.channel()
            channel.exchange_declare(
                exchange=self.exchange,
                exchange_type='topic',
                durable=True
            )
            channel.basic_publish(
                exchange=self.exchange,
                routing_key=routing_key,
                body=json.dumps(message, default=str),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=2,
                ),
            )
        finally:
            connection.close()


class CheckInEventPublisher:
    """
    Emits structured events for audit and notification consumers.

    Every event is logged. When RabbitMQ is configured it is also published;
    the operation that produced it has already committed, so a broker failure
    is logged rather than raised.
    """

    def __init__(self, publisher: RabbitMQPublisher | None = None):
        self.publisher = publisher or RabbitMQPublisher()

    def emit(self, event: str, data: Dict):
        message = {"event": event, "data": data}
        logger.info(f"{event}: {json.dumps(data, default=str)}")
        if not self.publisher.enabled:
            return
        try:
            self.publisher.publish(event, message)
        except AMQPError as e:
            logger.error(f"Failed to publish {event}: {e}")

    def event_session_started(self, session):
        self.emit("event_session.started", {
            "session_id": session.id,
            "event_id": session.event_id,
            "code": session.code,
            "started_by": session.started_by,
        })

    def event_session_ended(self, event_id, actor_id, session_ids):
        self.emit("event_session.ended", {
            "event_id": event_id,
            "ended_by": actor_id,
            "session_ids": list(session_ids),
        })

    def checkin_created(self, checkin):
        self.emit("checkin.created", {
            "checkin_id": checkin.id,
            "session_id": checkin.session_id,
            "event_id": checkin.event_id,
            "type": checkin.type,
            "member_id": checkin.member_id,
            "first_time": checkin.first_time,
        })

    def program_session_changed(self, session):
        event = "program_session.opened" if session.status == "active" else "program_session.closed"
        self.emit(event, {
            "session_id": session.id,
            "program": session.program,
            "service_date": session.service_date,
            "opened_by": session.opened_by,
            "closed_by": session.closed_by,
        })

    def program_checkin_created(self, checkin):
        self.emit("program_checkin.created", {
            "checkin_id": checkin.id,
            "session_id": checkin.session_id,
            "program": checkin.program,
            "child_id": checkin.child_id,
            "teen_user_id": checkin.teen_user_id,
            "has_pickup_code": checkin.pickup_code is not None,
        })

    def program_checkin_picked_up(self, checkin_id, picked_up_by, picked_up_at):
        self.emit("program_checkin.picked_up", {
            "checkin_id": checkin_id,
            "picked_up_by": picked_up_by,
            "picked_up_at": picked_up_at,
        })
