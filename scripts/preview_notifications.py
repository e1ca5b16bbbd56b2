import asyncio
import sys

from pushrelay.services.notifications.service import NotificationService


if __name__ == "__main__":
    token = sys.argv[1] if len(sys.argv) > 1 else "demo-token"
    outcome = asyncio.run(
        NotificationService().send_message(
            {"message": {"token": token, "notification": {"title": "Hello", "body": "World"}}}
        )
    )
    if outcome.succeeded:
        print(f"notification preview sent id={outcome.provider_message_id}")
    else:
        print(f"notification preview failed kind={outcome.error_kind.value} reason={outcome.error_detail}")
        sys.exit(1)
