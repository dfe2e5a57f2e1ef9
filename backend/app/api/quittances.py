from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.responses import dump, dump_all, paginate, success_response
from app.api.schemas import QuittanceResponse
from app.db.database import get_db
from app.models.enums import StatutQuittance
from app.models.loyer import Loyer
from app.models.quittance import Quittance
from app.utils.pdf_generator import generate_quittance_pdf, quittance_pdf_data

router = APIRouter()


def _get_quittance_or_404(quittance_id: int, db: Session) -> Quittance:
    quittance = db.query(Quittance).filter(Quittance.id == quittance_id).first()
    if not quittance:
        raise HTTPException(status_code=404, detail="Quittance introuvable.")
    return quittance


@router.get("/")
def list_quittances(
    statut: StatutQuittance | None = None,
    annee: int | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(Quittance).join(Quittance.loyer)
    if statut:
        q = q.filter(Quittance.statut == statut)
    if annee:
        q = q.filter(Loyer.annee == annee)
    quittances, pagination = paginate(q.order_by(Loyer.annee.desc(), Loyer.mois.desc()), page, limit)
    return success_response(
        {"quittances": dump_all(QuittanceResponse, quittances), "pagination": pagination}
    )


@router.get("/{quittance_id}")
def get_quittance(quittance_id: int, db: Session = Depends(get_db)):
    return success_response(dump(QuittanceResponse, _get_quittance_or_404(quittance_id, db)))


@router.get("/{quittance_id}/pdf")
def get_quittance_pdf(quittance_id: int, db: Session = Depends(get_db)):
    quittance = _get_quittance_or_404(quittance_id, db)
    pdf_bytes = generate_quittance_pdf(quittance_pdf_data(quittance))
    filename = f"quittance_{quittance.loyer.annee}_{quittance.loyer.mois:02d}_{quittance.id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
