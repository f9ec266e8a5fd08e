from typing import Optional

from fastapi import APIRouter, Depends, Query

from ptoflow.api.deps import get_services
from ptoflow.api.responses import ok
from ptoflow.core.security import get_admin_user
from ptoflow.schemas.import_schema import ImportIn, RestoreIn
from ptoflow.services.container import Services

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_admin_user)])


@router.post("/import/validate")
async def validate_import(payload: ImportIn, services: Services = Depends(get_services)):
    return ok(await services.imports.validate_import_data(payload.records, payload.check_identity))


@router.post("/import")
async def import_daily_schedules(payload: ImportIn, services: Services = Depends(get_services)):
    return await services.imports.import_daily_schedules(payload.records, payload.skip_validation)


@router.get("/export")
async def export_data(
    collection: Optional[list[str]] = Query(None),
    services: Services = Depends(get_services),
):
    return ok(await services.imports.export_data(collection))


@router.post("/restore")
async def restore_data(payload: RestoreIn, services: Services = Depends(get_services)):
    return ok(await services.imports.restore_data(payload.snapshot), "Data restored")
