import logging
import os
from dataclasses import replace
from datetime import date

from flask import Flask, jsonify, request

from loan_ledger.data_models import validate_terms
from loan_ledger.engine import OVERDUE, is_due, loan_summary, portfolio_totals
from loan_ledger.formatter import balance_to_dict, report_row_to_dict, summary_to_dict, totals_to_dict
from loan_ledger.utils import (
    loan_terms_from_dict,
    loan_terms_to_dict,
    parse_as_of,
    parse_optional_date,
    transaction_from_dict,
    transactions_from_list,
)
from loan_ledger_web.ledger_store import STATUS_ACTIVE, LedgerStore, create_store_from_env, parse_status

DUE_LOANS_LIMIT = 50

logger = logging.getLogger(__name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _as_of() -> date:
    """Accrual cutoff for open loans: ``?asOf=YYYY-MM-DD`` or today."""
    return parse_as_of(request.args.get("asOf")) or date.today()


def create_app(store: LedgerStore = None) -> Flask:
    app = Flask(__name__)
    app.config["LEDGER_DATABASE_URL"] = os.environ.get("LEDGER_DATABASE_URL")
    ledger_store = store or create_store_from_env(app.config["LEDGER_DATABASE_URL"])

    @app.errorhandler(ValueError)
    def handle_value_error(exc):
        logger.warning("rejected %s %s: %s", request.method, request.path, exc)
        return jsonify({"error": str(exc)}), 400

    @app.post("/api/calculate")
    def calculate():
        """Loan calculator: figures for loan terms that are not stored."""
        data = _json_body()
        terms = loan_terms_from_dict(data)
        transactions = transactions_from_list(data.get("transactions"))
        summary = loan_summary(terms, transactions, _as_of())
        return jsonify({"calculated": summary_to_dict(summary)})

    @app.post("/api/loans")
    def create_loan():
        data = _json_body()
        terms = loan_terms_from_dict(data)
        loan_id = ledger_store.add_loan(
            terms,
            bill_number=data.get("billNumber"),
            borrower=data.get("borrower"),
            remarks=data.get("remarks"),
        )
        return jsonify({"id": loan_id}), 201

    @app.get("/api/loans")
    def list_loans():
        as_of = _as_of()
        loans = []
        for info, terms, transactions in ledger_store.list_loans():
            balance = loan_summary(terms, transactions, as_of).balance
            figures = balance_to_dict(balance)
            loans.append(
                {
                    **info,
                    **loan_terms_to_dict(terms),
                    "interest": figures["interest"],
                    "total": figures["total"],
                    "outstanding": figures["amountLeft"],
                }
            )
        return jsonify({"loans": loans})

    @app.get("/api/loans/<loan_id>")
    def get_loan(loan_id):
        found = ledger_store.get_loan(loan_id)
        if found is None:
            return jsonify({"error": "Loan not found"}), 404
        info, terms, transactions = found
        summary = loan_summary(terms, transactions, _as_of())
        return jsonify(
            {
                "loan": {
                    **info,
                    **loan_terms_to_dict(terms),
                    "transactions": [
                        {"amount": float(t.amount), "type": t.type.value, "date": t.date.isoformat()}
                        for t in transactions
                    ],
                    "calculated": summary_to_dict(summary),
                }
            }
        )

    @app.patch("/api/loans/<loan_id>")
    def update_loan(loan_id):
        """Change the end date, status, bill number or remarks of a loan.

        Closing a loan usually sets its end date too, which stops interest
        from accruing any further.
        """
        data = _json_body()
        found = ledger_store.get_loan(loan_id)
        if found is None:
            return jsonify({"error": "Loan not found"}), 404
        _, terms, _ = found

        changes = {}
        if "endDate" in data:
            end_date = parse_optional_date(data["endDate"])
            validate_terms(replace(terms, end_date=end_date))
            changes["end_date"] = end_date
        if "status" in data:
            changes["status"] = parse_status(data["status"])
        if "billNumber" in data:
            changes["bill_number"] = data["billNumber"]
        if "remarks" in data:
            changes["remarks"] = data["remarks"]
        ledger_store.update_loan(loan_id, **changes)

        info, terms, _ = ledger_store.get_loan(loan_id)
        return jsonify({"loan": {**info, **loan_terms_to_dict(terms)}})

    @app.post("/api/loans/<loan_id>/transactions")
    def add_transaction(loan_id):
        transaction = transaction_from_dict(_json_body())
        if not ledger_store.add_transaction(loan_id, transaction):
            return jsonify({"error": "Loan not found"}), 404
        return jsonify({"status": "ok"}), 201

    @app.delete("/api/loans/<loan_id>")
    def delete_loan(loan_id):
        if not ledger_store.delete_loan(loan_id):
            return jsonify({"error": "Loan not found"}), 404
        return jsonify({"status": "ok"})

    @app.get("/api/dashboard/summary")
    def dashboard_summary():
        as_of = _as_of()
        summaries = [
            loan_summary(terms, transactions, as_of) for _, terms, transactions in ledger_store.list_loans()
        ]
        return jsonify({"summary": totals_to_dict(portfolio_totals(summaries))})

    @app.get("/api/dashboard/due")
    def due_loans():
        """Loans due today (``?filter=due-today``) or overdue (``?filter=overdue``).

        Overdue loans must still be active. Without a filter every loan is
        listed. Loans are ordered by end date, open loans last.
        """
        today = _as_of()
        due_filter = request.args.get("filter")
        matches = [
            (info, terms, transactions)
            for info, terms, transactions in ledger_store.list_loans()
            if is_due(terms, today, due_filter) and (due_filter != OVERDUE or info["status"] == STATUS_ACTIVE)
        ]
        matches.sort(key=lambda item: (item[1].end_date is None, item[1].end_date or date.min))
        rows = [
            report_row_to_dict(info, loan_summary(terms, transactions, today))
            for info, terms, transactions in matches[:DUE_LOANS_LIMIT]
        ]
        return jsonify({"loans": rows})

    @app.get("/api/reports/interest")
    def interest_report():
        """Per-loan interest, recoveries and age with totals, optionally for one borrower."""
        as_of = _as_of()
        borrower = request.args.get("borrower") or None
        loans = sorted(ledger_store.list_loans(borrower=borrower), key=lambda item: item[1].start_date, reverse=True)
        summaries = [loan_summary(terms, transactions, as_of) for _, terms, transactions in loans]
        return jsonify(
            {
                "loans": [report_row_to_dict(info, s) for (info, _, _), s in zip(loans, summaries)],
                "totals": totals_to_dict(portfolio_totals(summaries)),
                "borrower": borrower if borrower and loans else None,
            }
        )

    return app


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LEDGER_LOG_LEVEL", "INFO"))
    print("Starting Loan Ledger web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
