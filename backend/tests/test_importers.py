"""Tests for the Excel payment importers (standard and CAF layouts)."""
from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import ImportFatalError
from app.importers import caf, standard
from app.importers.caf import CafImporter
from app.importers.standard import StandardImporter
from app.models.enums import HistoriqueAction, ModePaiement, StatutLoyer
from app.models.historique import ContratHistorique
from app.models.loyer import Paiement
from app.models.quittance import Quittance

STANDARD_HEADERS = ["date", "montant", "mode", "payeur", "reference", "contratId", "adresseBien", "nomLocataire", "mois", "annee"]
CAF_HEADERS = ["Date_loyer", "Adresse1", "Adresse2", "CP", "Ville", "mois", "annee", "mode", "Montant_APL", "Montant_Locataire", "Montant_Autre"]


class TestStandardImporter:
    def test_full_payment_by_contract_id(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat()
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 1050, "Virement", "Julie Martin", "VIR-001", contrat.id, None, None, 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.lignes_lues == 1
        assert report.paiements_crees == 1
        assert report.loyers_mis_a_jour == 1
        assert report.quittances_generees == 1
        assert report.erreurs == []
        db.refresh(loyer)
        assert loyer.statut == StatutLoyer.PAYE
        paiement = db.query(Paiement).one()
        assert paiement.mode == ModePaiement.VIREMENT
        assert paiement.reference == "VIR-001"
        assert paiement.date == date(2024, 3, 10)

    def test_invalid_month_reported_with_row_number(self, db, make_contrat, make_loyer, write_xlsx):
        """mois=13 → erreur de ligne, aucun loyer touché, les autres lignes passent."""
        contrat = make_contrat()
        mars = make_loyer(contrat, 3, 2024)
        avril = make_loyer(contrat, 4, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 500, "CHEQUE", "Julie Martin", None, contrat.id, None, None, 3, 2024],
            ["2024-04-10", 500, "CHEQUE", "Julie Martin", None, contrat.id, None, None, 13, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.erreurs == ["Ligne 3: Mois invalide (13)"]
        assert report.paiements_crees == 1
        db.refresh(mars)
        db.refresh(avril)
        assert mars.montant_paye == Decimal("500")
        assert avril.montant_paye == Decimal("0")
        assert avril.statut == StatutLoyer.EN_ATTENTE

    def test_row_errors(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat()
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 100, "CB", None, None, contrat.id, None, None, 3, 2024],
            [None, 100, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", "abc", "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", -5, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["pas une date", 100, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, 3, 1999],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, None, 2024],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.erreurs == [
            "Ligne 2: Payeur manquant",
            "Ligne 3: Date manquante",
            "Ligne 4: Montant invalide ou manquant",
            "Ligne 5: Le montant doit être positif",
            "Ligne 6: Format de date invalide",
            "Ligne 7: Année invalide (1999)",
            "Ligne 8: Mois et année requis",
        ]
        assert report.paiements_crees == 1
        assert db.query(Paiement).one().mode == ModePaiement.CARTE

    def test_resolution_by_address_then_tenant(self, db, make_contrat, make_loyer, write_xlsx):
        lilas = make_contrat(adresse="12 rue des Lilas")
        roses = make_contrat(adresse="4 allée des Roses", nom="Bernard", prenom="Luc")
        loyer_lilas = make_loyer(lilas, 3, 2024)
        loyer_roses = make_loyer(roses, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 200, "ESPECES", "Julie", None, None, "rue des lilas", None, 3, 2024],
            ["2024-03-11", 300, "ESPECES", "Luc", None, None, None, "bernard", 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.loyers_mis_a_jour == 2
        db.refresh(loyer_lilas)
        db.refresh(loyer_roses)
        assert loyer_lilas.montant_paye == Decimal("200")
        assert loyer_roses.montant_paye == Decimal("300")
        # one history row per lease
        assert db.query(ContratHistorique).count() == 2

    def test_unknown_mode_falls_back_to_autre(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat()
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 100, "bitcoin", "Julie", None, contrat.id, None, None, 3, 2024],
        ])

        StandardImporter(db).run(path)

        assert db.query(Paiement).one().mode == ModePaiement.AUTRE

    def test_excel_serial_date_and_blank_rows(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat()
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            [None] * len(STANDARD_HEADERS),
            [45361, 100, "Virement", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", 100, "Virement", "Julie", None, 9999, None, None, 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.lignes_lues == 2
        assert db.query(Paiement).one().date == date(2024, 3, 10)
        assert report.erreurs == ["Ligne 4: Loyer non trouvé"]

    def test_several_rows_same_rent_record(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat()
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-02", 400, "Virement", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-20", 650, "Virement", "Julie", None, contrat.id, None, None, 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.loyers_mis_a_jour == 1
        assert report.quittances_generees == 1
        db.refresh(loyer)
        assert loyer.statut == StatutLoyer.PAYE
        history = db.query(ContratHistorique).one()
        assert history.action == HistoriqueAction.IMPORT_PAIEMENTS_EXCEL
        assert history.metadonnees["nombrePaiements"] == 2
        assert history.metadonnees["montantTotal"] == 1050.0

    def test_no_valid_row_is_fatal(self, db, make_contrat, write_xlsx):
        make_contrat()
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 100, "Virement", "Julie", None, None, "nulle part", None, 3, 2024],
        ])

        with pytest.raises(ImportFatalError) as exc_info:
            StandardImporter(db).run(path)
        assert exc_info.value.erreurs == ["Ligne 2: Loyer non trouvé"]

    def test_missing_file(self, db, tmp_path):
        with pytest.raises(ImportFatalError, match="Fichier non trouvé"):
            StandardImporter(db).run(tmp_path / "absent.xlsx")

    def test_empty_sheet(self, db, write_xlsx):
        path = write_xlsx(STANDARD_HEADERS, [])
        with pytest.raises(ImportFatalError, match="vide"):
            StandardImporter(db).run(path)


    def test_malformed_cells_are_row_errors(self, db, make_contrat, make_loyer, write_xlsx):
        """Valeurs numériques aberrantes : erreur sur la ligne, la ligne valide suivante est importée."""
        contrat = make_contrat()
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            [99999999, 100, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", "NaN", "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", "Infinity", "CB", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, "Infinity", 2024],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, 3.5, 2024],
            ["2024-03-10", 100, "CB", "Julie", None, contrat.id, None, None, 3, "-Infinity"],
            ["2024-03-10", 1050, "CB", "Julie", None, contrat.id, None, None, 3, 2024],
        ])

        report = StandardImporter(db).run(path)

        assert report.erreurs == [
            "Ligne 2: Format de date invalide",
            "Ligne 3: Montant invalide ou manquant",
            "Ligne 4: Montant invalide ou manquant",
            "Ligne 5: Mois invalide (Infinity)",
            "Ligne 6: Mois invalide (3.5)",
            "Ligne 7: Année invalide (-Infinity)",
        ]
        assert report.paiements_crees == 1
        assert report.quittances_generees == 1
        db.refresh(loyer)
        assert loyer.montant_paye == Decimal("1050")
        assert loyer.statut == StatutLoyer.PAYE


class TestCafImporter:
    def test_split_amounts_into_payments(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", "Apt 3", "59400", "CAMBRAI", 3, 2024, "Virement CAF", 300, 750, 0],
        ])

        report = CafImporter(db).run(path)

        assert report.paiements_crees == 2
        assert report.quittances_generees == 1
        paiements = db.query(Paiement).order_by(Paiement.id).all()
        assert [(p.payeur, p.montant, p.commentaire) for p in paiements] == [
            ("CAF", Decimal("300"), "Import Excel - APL"),
            ("Locataire", Decimal("750"), "Import Excel - Locataire"),
        ]
        assert all(p.mode == ModePaiement.VIREMENT for p in paiements)
        db.refresh(loyer)
        assert loyer.statut == StatutLoyer.PAYE

    def test_missing_date_uses_first_of_month(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            [None, "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, "chèque", 0, 200, None],
        ])

        CafImporter(db).run(path)

        paiement = db.query(Paiement).one()
        assert paiement.date == date(2024, 3, 1)
        assert paiement.mode == ModePaiement.CHEQUE

    def test_place_name_correction(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="7 rue de l'Église", ville="Ligny en Cambresis")
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "7 rue de l'Église", None, "59191", "LIGNY-EN-CAMBRESIS", 3, 2024, None, 250, 0, 0],
        ])

        CafImporter(db).run(path)

        db.refresh(loyer)
        assert loyer.montant_paye == Decimal("250")
        assert db.query(Paiement).one().mode == ModePaiement.VIREMENT

    def test_row_without_positive_amount(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        make_loyer(contrat, 3, 2024)
        make_loyer(contrat, 4, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 0, 0, 0],
            ["2024-04-05", "12 rue des Lilas", None, "59400", "Cambrai", 4, 2024, None, 100, 0, 0],
        ])

        report = CafImporter(db).run(path)

        assert report.erreurs == ["Ligne 2: Aucun montant positif trouvé"]
        assert report.paiements_crees == 1

    def test_address_not_found(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 100, 0, 0],
            ["2024-03-05", "99 bd Nord", None, "59400", "Cambrai", 3, 2024, None, 100, 0, 0],
        ])

        report = CafImporter(db).run(path)

        assert report.erreurs == ["Ligne 3: Loyer non trouvé pour 99 bd Nord 59400 Cambrai 3/2024"]

    def test_invalid_year(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2031, None, 100, 0, 0],
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 100, 0, 0],
        ])

        report = CafImporter(db).run(path)

        assert report.erreurs == ["Ligne 2: Année invalide (2031)"]


    def test_malformed_cells_are_row_errors(self, db, make_contrat, make_loyer, write_xlsx):
        contrat = make_contrat(adresse="12 rue des Lilas", ville="Cambrai")
        loyer = make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            [99999999, "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 100, 0, 0],
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, "Infinity", 0, 0],
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 0, "NaN", 0],
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", "Infinity", 2024, None, 100, 0, 0],
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 300, 750, 0],
        ])

        report = CafImporter(db).run(path)

        assert report.erreurs == [
            "Ligne 2: Date invalide (99999999)",
            "Ligne 3: Montant invalide (Montant_APL: Infinity)",
            "Ligne 4: Montant invalide (Montant_Locataire: NaN)",
            "Ligne 5: Mois invalide (Infinity)",
        ]
        assert report.paiements_crees == 2
        db.refresh(loyer)
        assert loyer.montant_paye == Decimal("1050")
        assert db.query(Quittance).count() == 1


class TestCommandLine:
    def test_standard_exit_code_success(self, make_contrat, make_loyer, write_xlsx, session_factory, capsys):
        contrat = make_contrat()
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(STANDARD_HEADERS, [
            ["2024-03-10", 1050, "Virement", "Julie", None, contrat.id, None, None, 3, 2024],
            ["2024-03-10", 1050, "Virement", "Julie", None, contrat.id, None, None, 14, 2024],
        ])

        code = standard.main([str(path)], session_factory=session_factory)

        assert code == 0
        out = capsys.readouterr().out
        assert "Ligne 3: Mois invalide (14)" in out
        assert "1 paiement(s) créé(s)" in out
        assert out.index("Ligne 3") < out.index("paiement(s) créé(s)")

    def test_missing_file_exit_code(self, tmp_path, session_factory):
        assert standard.main([str(tmp_path / "absent.xlsx")], session_factory=session_factory) == 1
        assert caf.main([str(tmp_path / "absent.xlsx")], session_factory=session_factory) == 1

    def test_caf_exit_code_nothing_valid(self, make_contrat, write_xlsx, session_factory, capsys):
        make_contrat()
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 0, 0, 0],
        ])

        assert caf.main([str(path)], session_factory=session_factory) == 1
        assert "Aucun montant positif trouvé" in capsys.readouterr().out

    def test_receipts_visible_from_new_session(self, make_contrat, make_loyer, write_xlsx, session_factory):
        contrat = make_contrat()
        make_loyer(contrat, 3, 2024)
        path = write_xlsx(CAF_HEADERS, [
            ["2024-03-05", "12 rue des Lilas", None, "59400", "Cambrai", 3, 2024, None, 1050, 0, 0],
        ])

        assert caf.main([str(path)], session_factory=session_factory) == 0
        check = session_factory()
        try:
            assert check.query(Quittance).count() == 1
        finally:
            check.close()
