import logging


logger = logging.getLogger("uvicorn.error")


async def notify_manager(request: dict) -> None:
    # Delivery is out of scope; the log line is the notification
    logger.info(
        "Notifying manager %s about PTO request %s from %s",
        request.get("manager_name") or request.get("manager_id"),
        request.get("pto_request_id"),
        request.get("requester_name") or request.get("requester_id"),
    )


async def notify_requester(request: dict) -> None:
    logger.info(
        "Notifying requester %s that PTO request %s is %s",
        request.get("requester_name") or request.get("requester_id"),
        request.get("pto_request_id"),
        request.get("status"),
    )
