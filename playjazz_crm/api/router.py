# playjazz_crm/api/router.py
from fastapi import APIRouter
from playjazz_crm.modules.units.router import router as units_router
from playjazz_crm.modules.users.router import router as users_router
from playjazz_crm.modules.leads.router import router as leads_router
from playjazz_crm.modules.students.router import router as students_router
from playjazz_crm.modules.payments.router import router as payments_router
from playjazz_crm.modules.system_config.router import router as config_router

api_router = APIRouter()

api_router.include_router(units_router,    prefix="/units",    tags=["units"])
api_router.include_router(users_router,    prefix="/users",    tags=["users"])
api_router.include_router(leads_router,    prefix="/leads",    tags=["leads"])
api_router.include_router(students_router, prefix="/students", tags=["students"])
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])
api_router.include_router(config_router,   prefix="/config",   tags=["config"])
