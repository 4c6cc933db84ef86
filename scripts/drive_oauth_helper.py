"""Google Drive OAuth helper: print the consent URL, then exchange the callback code.

Usage:
    python -m scripts.drive_oauth_helper url [--state STATE]
    python -m scripts.drive_oauth_helper exchange CODE [--list]
Requires REMOTE_ENABLED=true, REMOTE_CLIENT_ID, REMOTE_CLIENT_SECRET and
REMOTE_REDIRECT_URI. The exchange prints the tokens once so they can be stored
by the host application and passed to set_credentials() on startup.
"""

import argparse
import asyncio
import sys

from attachment_storage.core.config import get_settings
from attachment_storage.domain.exceptions import AttachmentStorageException
from attachment_storage.infrastructure.external.storage.factory import StorageFactory
from attachment_storage.shared.enums import StorageBackend
from attachment_storage.shared.telemetry import setup_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    url = sub.add_parser("url", help="Print the consent URL")
    url.add_argument("--state", default=None)
    exchange = sub.add_parser("exchange", help="Exchange an authorization code for tokens")
    exchange.add_argument("code")
    exchange.add_argument(
        "--list", action="store_true", help="List the newest Drive files with the new token"
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    setup_logging()
    settings = get_settings()
    if not settings.remote_configured:
        print(
            "Remote storage not configured: set REMOTE_ENABLED, REMOTE_CLIENT_ID and REMOTE_CLIENT_SECRET",
            file=sys.stderr,
        )
        sys.exit(1)
    credentials = StorageFactory.create_credential_manager(settings)

    if args.command == "url":
        print(credentials.authorization_url(args.state))
        return

    try:
        status = await credentials.complete_authorization(args.code)
    except AttachmentStorageException as e:
        print(f"{e.error_code}: {e.message}", file=sys.stderr)
        sys.exit(1)
    state = credentials.snapshot()
    print("Store these tokens securely; they are not shown again.")
    print(f"ACCESS_TOKEN={state.access_token}")
    print(f"REFRESH_TOKEN={state.refresh_token or ''}")
    print(f"Expires at: {status.expires_at.isoformat() if status.expires_at else 'unknown'}")

    if args.list:
        drive = StorageFactory.create_backends(settings, credentials)[StorageBackend.REMOTE]
        for f in await drive.list_files():
            print(f"{f.id}\t{f.name}")


if __name__ == "__main__":
    asyncio.run(main())
