from flask import Blueprint, jsonify, request

from ..errors import CashierError
from ..services.reporting_service import ReportAggregator
from ..storage import get_storage
from . import error_response, internal_error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/report")


@reports_bp.get("/today")
def today_report():
    try:
        report = ReportAggregator(get_storage().reports).today()
        return jsonify(report.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to build today's report")


@reports_bp.get("")
def range_report():
    """Inclusive summary for ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD (both required)."""
    try:
        report = ReportAggregator(get_storage().reports).summary(
            request.args.get("start_date"),
            request.args.get("end_date"),
        )
        return jsonify(report.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to build report")
