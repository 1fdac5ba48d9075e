# cyberbill/api/v1/endpoints/reports.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ....config.database import get_db
from ....core.dependencies import get_current_user
from ....models.user import User
from ....services.report_service import ReportKind, ReportService, report_filename

router = APIRouter()


@router.get("/{kind}")
def download_report(
    kind: ReportKind,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Download sales, customers, products, suppliers or payments as CSV
    """
    csv_data = ReportService().export_csv(db, current_user.id, kind)
    return Response(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={report_filename(kind)}"}
    )
