"""Admin dashboard and analytics routes."""

from aiohttp import web
from aiohttp.web import Request, Response

from api.context import REPORTING_KEY, require_admin
from api.responses import json_response, result_response


@require_admin
async def dashboard(request: Request) -> Response:
    """GET /api/admin/dashboard - always renders, with empty sections on failure."""
    data = await request.app[REPORTING_KEY].get_dashboard()
    return json_response({"success": True, "dashboard": data})


@require_admin
async def analytics(request: Request) -> Response:
    """GET /api/admin/analytics?period=7d|30d|90d|1y"""
    period = request.query.get("period", "30d")
    result = await request.app[REPORTING_KEY].get_analytics(period)
    if not result.success:
        return result_response(result)

    data = result.data
    return json_response(
        {
            "success": True,
            "period": data["period"],
            "dateRange": data["dateRange"],
            "analytics": data["analytics"],
        }
    )


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/api/admin/dashboard", dashboard)
    app.router.add_get("/api/admin/analytics", analytics)
