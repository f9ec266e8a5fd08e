import logging
import re
from typing import Optional

from ptoflow.core.errors import PTOFlowError
from ptoflow.db.record_store import RecordStore, generate_id, utcnow_iso
from ptoflow.db.schema import LEAVE_TYPES, PTO_DAILY_SCHEDULES, SCHEMA
from ptoflow.services.balance_service import hours_for_schedule_type
from ptoflow.services.identity import IdentityProvider


logger = logging.getLogger("uvicorn.error")

BATCH_SIZE = 10
IMPORT_STATUSES = ("pending", "approved", "declined", "cancelled")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ImportService:
    def __init__(self, store: RecordStore, identity: IdentityProvider) -> None:
        self.store = store
        self.identity = identity

    async def validate_import_data(self, records: list[dict], check_identity: bool = False) -> dict:
        if not records:
            return {
                "valid": False,
                "total_records": 0,
                "valid_records": [],
                "invalid_records": 0,
                "errors": [{"record": 0, "errors": ["No valid import data provided"]}],
            }

        errors = []
        valid_records = []
        account_cache: dict = {}
        for index, record in enumerate(records, start=1):
            problems = []
            enhanced = dict(record)

            for field in ("requester_email", "manager_email", "leave_type", "status", "date"):
                if not record.get(field):
                    problems.append(f"Missing {field}")

            leave_type = (record.get("leave_type") or "").lower()
            if leave_type:
                if leave_type in LEAVE_TYPES:
                    enhanced["leave_type"] = leave_type
                else:
                    problems.append(
                        f'Invalid leave_type: "{record["leave_type"]}". Must be one of: {", ".join(LEAVE_TYPES)}'
                    )

            status = (record.get("status") or "").lower()
            if status:
                if status in IMPORT_STATUSES:
                    enhanced["status"] = status
                else:
                    problems.append(f"Invalid status. Must be one of: {', '.join(IMPORT_STATUSES)}")

            if record.get("date") and not DATE_RE.match(str(record["date"])):
                problems.append("Invalid date format. Expected YYYY-MM-DD")
            for field in ("requester_email", "manager_email"):
                if record.get(field) and not EMAIL_RE.match(record[field]):
                    problems.append(f"Invalid {field} format")

            if check_identity and not problems:
                for prefix in ("requester", "manager"):
                    email = record[f"{prefix}_email"]
                    if email not in account_cache:
                        account_cache[email] = await self.identity.find_user_by_email(email)
                    account = account_cache[email]
                    if account is None:
                        problems.append(f"{prefix.capitalize()} not found with email: {email}")
                    else:
                        enhanced[f"{prefix}_id"] = account.account_id
                        enhanced[f"{prefix}_name"] = account.display_name

            if problems:
                errors.append({"record": index, "errors": problems, "data": record})
            else:
                valid_records.append(enhanced)

        return {
            "valid": not errors,
            "total_records": len(records),
            "valid_records": valid_records,
            "invalid_records": len(errors),
            "errors": errors,
        }

    @staticmethod
    def _schedule_row(record: dict) -> dict:
        schedule_type = record.get("schedule_type") or "FULL_DAY"
        if schedule_type == "HALF_DAY":
            schedule_type = "HALF_DAY_MORNING"
        row = dict(record)
        row.update(
            {
                "pto_daily_schedule_id": record.get("pto_daily_schedule_id") or generate_id(),
                "pto_request_id": record.get("pto_request_id") or f"pto-import-{generate_id()}",
                "schedule_type": schedule_type,
                "hours": record.get("hours") or hours_for_schedule_type(schedule_type),
                "imported": True,
                "import_date": utcnow_iso(),
            }
        )
        return row

    async def import_daily_schedules(self, records: list[dict], skip_validation: bool = False) -> dict:
        if skip_validation:
            valid_records = records
        else:
            validation = await self.validate_import_data(records, check_identity=True)
            if not validation["valid"]:
                return {
                    "success": False,
                    "data": validation,
                    "message": f"Invalid import data: {validation['invalid_records']} records have errors",
                }
            valid_records = validation["valid_records"]

        imported = []
        failures = []
        for start in range(0, len(valid_records), BATCH_SIZE):
            batch = valid_records[start:start + BATCH_SIZE]
            logger.info("Importing batch %d of %d", start // BATCH_SIZE + 1, -(-len(valid_records) // BATCH_SIZE))
            for offset, record in enumerate(batch, start=start + 1):
                try:
                    imported.append(await self.store.create(PTO_DAILY_SCHEDULES, self._schedule_row(record)))
                except PTOFlowError as exc:
                    logger.error("Error importing record %d: %s", offset, exc)
                    failures.append({"record": offset, "error": str(exc), "data": record})

        return {
            "success": bool(imported),
            "data": {
                "total_records": len(valid_records),
                "imported_records": len(imported),
                "failed_records": len(failures),
                "errors": failures,
            },
            "message": f"Successfully imported {len(imported)} of {len(valid_records)} PTO daily schedules",
        }

    async def export_data(self, collections: Optional[list[str]] = None) -> dict[str, list[dict]]:
        return {name: await self.store.export_collection(name) for name in (collections or list(SCHEMA))}

    async def restore_data(self, snapshot: dict[str, list[dict]]) -> dict[str, int]:
        """Replace each collection named in ``snapshot``; nothing is written if any record is invalid."""
        return await self.store.replace_collections(snapshot)
