"""Durable bid intake queue backed by SQS.

Delivery is at-least-once: a message stays on the queue until `delete` is
called with its receipt handle, and becomes visible again after the queue's
visibility timeout if the consumer never acknowledges it.
"""
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import boto3

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueMessage:
    message_id: str
    body: str
    receipt_handle: str


class BidQueue(Protocol):
    def send(self, body: dict) -> str: ...

    def receive(self, max_messages: int = 1, wait_seconds: int = 20) -> list[QueueMessage]: ...

    def delete(self, receipt_handle: str) -> None: ...


class SqsBidQueue:
    def __init__(self, queue_url: str, client=None):
        if not queue_url:
            raise RuntimeError("BID_QUEUE_URL is not set")
        self.queue_url = queue_url
        self.client = client or boto3.client(
            "sqs",
            region_name=settings.AWS_REGION,
            endpoint_url=settings.SQS_ENDPOINT_URL or None,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        )

    def send(self, body: dict) -> str:
        resp = self.client.send_message(
            QueueUrl=self.queue_url,
            MessageBody=json.dumps(body, default=str),
        )
        return resp["MessageId"]

    def receive(self, max_messages: int = 1, wait_seconds: int = 20) -> list[QueueMessage]:
        resp = self.client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
        )
        return [
            QueueMessage(message_id=m["MessageId"], body=m["Body"], receipt_handle=m["ReceiptHandle"])
            for m in resp.get("Messages", [])
        ]

    def delete(self, receipt_handle: str) -> None:
        self.client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)


@lru_cache(maxsize=1)
def get_bid_queue() -> BidQueue:
    return SqsBidQueue(settings.BID_QUEUE_URL)
