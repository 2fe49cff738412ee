"""Discord webhook notification adapter.

Turns a NotificationMessage into an execute-webhook call. Video attachments
are fetched from their source URL and uploaded as multipart files next to
the JSON payload.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence, Tuple

import httpx

from core.models import Commit, Embed, NotificationMessage
from core.ports import ErrorReporterPort

LOGGER = logging.getLogger(__name__)

UploadFile = Tuple[str, bytes]


def embed_payload(embed: Embed) -> dict[str, Any]:
    """Serialize an Embed in Discord's embed object format."""

    payload: dict[str, Any] = {"color": embed.color}
    if embed.title:
        payload["title"] = embed.title
    if embed.url:
        payload["url"] = embed.url
    if embed.description:
        payload["description"] = embed.description
    if embed.image_url:
        payload["image"] = {"url": embed.image_url}
    if embed.author_name:
        author: dict[str, Any] = {"name": embed.author_name}
        if embed.author_icon_url:
            author["icon_url"] = embed.author_icon_url
        if embed.author_url:
            author["url"] = embed.author_url
        payload["author"] = author
    if embed.footer_text:
        footer: dict[str, Any] = {"text": embed.footer_text}
        if embed.footer_icon_url:
            footer["icon_url"] = embed.footer_icon_url
        payload["footer"] = footer
    if embed.timestamp:
        payload["timestamp"] = embed.timestamp
    if embed.fields:
        payload["fields"] = [
            {"name": item.name, "value": item.value, "inline": item.inline} for item in embed.fields
        ]
    return payload


def message_payload(message: NotificationMessage) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "content": message.content,
        "username": message.username,
        "avatar_url": message.avatar_url,
        "embeds": [embed_payload(embed) for embed in message.embeds],
        "allowed_mentions": {"parse": list(message.allowed_mentions)},
    }
    if message.attachments:
        payload["attachments"] = [
            {"id": index, "filename": attachment.filename}
            for index, attachment in enumerate(message.attachments)
        ]
    return payload


class DiscordWebhookClient:
    """Minimal execute-webhook client on top of a shared httpx client."""

    def __init__(self, http: httpx.AsyncClient, webhook_url: str) -> None:
        self._http = http
        self._webhook_url = webhook_url

    async def execute(self, payload: dict[str, Any], files: Sequence[UploadFile] = ()) -> None:
        """POST one message; raises httpx.HTTPError on any failure."""

        if files:
            multipart = {
                f"files[{index}]": (filename, content)
                for index, (filename, content) in enumerate(files)
            }
            response = await self._http.post(
                self._webhook_url,
                data={"payload_json": json.dumps(payload)},
                files=multipart,
            )
        else:
            response = await self._http.post(self._webhook_url, json=payload)
        response.raise_for_status()

    async def download(self, url: str) -> bytes:
        response = await self._http.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content


class DiscordWebhookNotifier:
    """Notifier adapter that posts commit messages through a webhook."""

    def __init__(self, webhook: DiscordWebhookClient, reporter: ErrorReporterPort) -> None:
        self._webhook = webhook
        self._reporter = reporter

    async def deliver(self, message: NotificationMessage, commit: Commit) -> bool:
        """Send one message. No retry: failures are reported and False returned."""

        payload = message_payload(message)
        try:
            files = [
                (attachment.filename, await self._webhook.download(attachment.url))
                for attachment in message.attachments
            ]
            await self._webhook.execute(payload, files)
        except httpx.HTTPError as exc:
            await self._reporter.report(exc, f"sending commit {commit.id} to Discord")
            return False

        LOGGER.info(
            "Message sent successfully with %s embeds and %s attachments.",
            len(message.embeds),
            len(message.attachments),
        )
        return True
