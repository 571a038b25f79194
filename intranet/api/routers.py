from fastapi import APIRouter
from intranet.api import version_prefix
from intranet.admin.routes import activity_router, admin_home_router, admin_users_router
from intranet.auth.routes import auth_router
from intranet.common.routes import home_router
from intranet.suggestions.routes import categories_admin_router, suggestions_admin_router, suggestions_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(auth_router, prefix="/auth",tags=["auth"])
public_routers.include_router(suggestions_router, prefix="/suggestions",tags=["suggestions"])
public_routers.include_router(home_router,tags=["home"])

#--------------------------------------------------------------------------------------------------------

admin_prefix = f"{version_prefix}/admin"

admin_routers = APIRouter(prefix=admin_prefix)

admin_routers.include_router(admin_home_router, tags=["admin"])
admin_routers.include_router(suggestions_admin_router, prefix="/suggestions",tags=["suggestions-admin"])
admin_routers.include_router(categories_admin_router, prefix="/suggestion-categories",tags=["suggestions-admin"])
admin_routers.include_router(admin_users_router, prefix="/users",tags=["users-admin"])
admin_routers.include_router(activity_router, prefix="/activity",tags=["activity-admin"])
