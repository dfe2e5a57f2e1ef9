"""
PDF generator for rent receipts (quittances de loyer) using ReportLab.
Produces a one-page, print-ready A4 document.
"""
import io
from datetime import date
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from app.models.quittance import Quittance

HEADER_COLOR = colors.HexColor("#2c3e50")
LIGHT_GRAY = colors.HexColor("#f5f5f5")
DARK_GRAY = colors.HexColor("#333333")

MODE_LABELS = {
    "VIREMENT": "Virement bancaire",
    "CHEQUE": "Chèque",
    "ESPECES": "Espèces",
    "CARTE": "Carte bancaire",
    "PRELEVEMENT": "Prélèvement",
    "AUTRE": "Autre",
}

CERTIFICATION = (
    "Je soussigné(e), propriétaire du logement désigné ci-dessus, certifie avoir reçu "
    "de la part du (des) locataire(s) la somme indiquée ci-dessus pour le paiement du "
    "loyer et des charges de la période mentionnée."
)


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="FormTitle",
        fontSize=18,
        fontName="Helvetica-Bold",
        textColor=colors.white,
        spaceAfter=6,
    ))
    styles.add(ParagraphStyle(
        name="SectionTitle",
        fontSize=11,
        fontName="Helvetica-Bold",
        textColor=HEADER_COLOR,
        spaceBefore=8,
        spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        name="FieldLabel",
        fontSize=10,
        fontName="Helvetica",
        textColor=DARK_GRAY,
        leading=13,
    ))
    styles.add(ParagraphStyle(
        name="Disclaimer",
        fontSize=7,
        fontName="Helvetica-Oblique",
        textColor=colors.gray,
    ))
    return styles


def _header_table(periode: str, styles) -> Table:
    data = [
        [
            Paragraph("<b>QUITTANCE DE LOYER</b>", styles["FormTitle"]),
            Paragraph(f"<font color='white'>{escape(periode)}</font>", styles["FieldLabel"]),
        ]
    ]
    t = Table(data, colWidths=[11 * cm, 6 * cm])
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("VALIGN", (0, 0), (-1, 0), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, 0), 10),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 10),
        ("LEFTPADDING", (0, 0), (-1, 0), 8),
    ]))
    return t


def _kv_table(rows: list[tuple[str, str]], styles) -> Table:
    """Render a list of (label, value) pairs as a two-column table."""
    data = [[Paragraph(f"<b>{escape(k)}</b>", styles["FieldLabel"]),
             Paragraph(escape(str(v)), styles["FieldLabel"])]
            for k, v in rows]
    t = Table(data, colWidths=[6 * cm, 11 * cm])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.white, LIGHT_GRAY]),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
    ]))
    return t


def _lines(*parts) -> str:
    return "<br/>".join(escape(p) for p in parts if p)


def _mode_label(mode: str | None) -> str:
    return MODE_LABELS.get(mode, "Non renseigné")


def _fait_a(ville: str | None, le: date) -> str:
    if ville:
        return f"Fait à {escape(ville)}, le {le.strftime('%d/%m/%Y')}"
    return f"Fait le {le.strftime('%d/%m/%Y')}"


def quittance_pdf_data(quittance: Quittance) -> dict:
    """Flatten a receipt and its lease into the values printed on the PDF."""
    loyer = quittance.loyer
    contrat = loyer.contrat
    bien = contrat.bien
    proprietaire = bien.proprietaire
    dernier_paiement = loyer.paiements[-1] if loyer.paiements else None

    data = {
        "periode": quittance.periode,
        "montant": float(quittance.montant),
        "loyer": float(contrat.loyer),
        "charges": float(contrat.charges_mensuelles or 0),
        "date_generation": quittance.date_generation or date.today(),
        "date_paiement": dernier_paiement.date if dernier_paiement else None,
        "mode_paiement": dernier_paiement.mode.value if dernier_paiement else None,
        "bien_adresse": bien.adresse,
        "bien_ville": " ".join(p for p in (bien.code_postal, bien.ville) if p),
        "locataires": [l.nom_complet for l in contrat.locataires],
        "proprietaire": None,
    }
    if proprietaire:
        data["proprietaire"] = {
            "nom": f"{proprietaire.prenom} {proprietaire.nom}",
            "adresse": proprietaire.adresse,
            "ville": proprietaire.ville,
            "code_postal": proprietaire.code_postal,
            "email": proprietaire.email,
            "telephone": proprietaire.telephone,
        }
    return data


def generate_quittance_pdf(data: dict) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, rightMargin=2 * cm, leftMargin=2 * cm,
                            topMargin=2 * cm, bottomMargin=2 * cm)
    styles = _styles()

    proprietaire = data.get("proprietaire") or {}
    bailleur = _lines(
        proprietaire.get("nom"),
        proprietaire.get("adresse"),
        " ".join(p for p in (proprietaire.get("code_postal"), proprietaire.get("ville")) if p),
        f"Email: {proprietaire['email']}" if proprietaire.get("email") else None,
        f"Tél: {proprietaire['telephone']}" if proprietaire.get("telephone") else None,
    ) or "Non renseigné"
    locataire = _lines(
        " et ".join(data.get("locataires", [])),
        data.get("bien_adresse"),
        data.get("bien_ville"),
    )
    parties = Table(
        [[Paragraph("<b>Bailleur</b>", styles["FieldLabel"]), Paragraph("<b>Locataire(s)</b>", styles["FieldLabel"])],
         [Paragraph(bailleur, styles["FieldLabel"]), Paragraph(locataire, styles["FieldLabel"])]],
        colWidths=[8.5 * cm, 8.5 * cm],
    )
    parties.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LINEBELOW", (0, 0), (-1, 0), 0.5, HEADER_COLOR),
    ]))

    date_paiement = data.get("date_paiement") or data["date_generation"]
    details = [
        ("Période", data["periode"]),
        ("Bien loué", data.get("bien_adresse", "")),
        ("Loyer hors charges", f"{data.get('loyer', 0):,.2f} €"),
        ("Charges", f"{data.get('charges', 0):,.2f} €"),
        ("Montant total reçu", f"{data['montant']:,.2f} €"),
        ("Date de paiement", date_paiement.strftime("%d/%m/%Y")),
        ("Mode de paiement", _mode_label(data.get("mode_paiement"))),
    ]

    story = [
        _header_table(data["periode"], styles),
        Spacer(1, 0.6 * cm),
        parties,
        Spacer(1, 0.6 * cm),
        Paragraph("DÉTAILS DE LA QUITTANCE", styles["SectionTitle"]),
        _kv_table(details, styles),
        Spacer(1, 0.6 * cm),
        Paragraph(CERTIFICATION, styles["FieldLabel"]),
        Spacer(1, 0.4 * cm),
        Paragraph(_fait_a(proprietaire.get("ville"), date.today()), styles["FieldLabel"]),
        Spacer(1, 0.3 * cm),
        Paragraph("Signature du propriétaire :", styles["FieldLabel"]),
        Spacer(1, 2 * cm),
        Paragraph(
            "Cette quittance est générée automatiquement par le système de gestion locative. "
            "Elle annule tous les reçus qui auraient pu être donnés pour acompte versé sur la période.",
            styles["Disclaimer"],
        ),
    ]
    doc.build(story)
    return buf.getvalue()
