"""
Streamlit Frontend for Expense Tracker

The screens a user works with every day:
- Dashboard: total spending, per-category breakdown, recent expenses
- Add Expense: the form, with inline field errors
- History: every expense, filterable by category, with delete
- Scan & Pay: paste a scanned UPI code and open the payment app

DESIGN PRINCIPLES:
1. Validation happens before submit, errors shown next to the field
2. Destructive actions (delete, clear all) always ask first
3. Storage errors are shown plainly, never hidden
"""

import asyncio
from datetime import date

import streamlit as st

from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Category
from expense_tracker.orchestrator import (
    ExpenseFlow,
    PaymentFlow,
    create_app_components,
)
from expense_tracker.services.payments import PaymentLaunchError, PaymentLauncher
from expense_tracker.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="centered",
    initial_sidebar_state="expanded",
)


class LinkButtonLauncher(PaymentLauncher):
    """
    Hands a UPI link to the browser as a link button.

    On a phone, tapping it opens the installed UPI app.
    """

    async def can_open(self, uri: str) -> bool:
        return uri.startswith("upi://")

    async def open(self, uri: str) -> None:
        try:
            st.link_button("Open payment app", uri, type="primary")
        except Exception as e:
            raise PaymentLaunchError(str(e)) from e


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """One loop for the whole process; the ledger's lock is bound to it."""
    return asyncio.new_event_loop()


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return get_event_loop().run_until_complete(coro)


@st.cache_resource
def get_components():
    """Get or create application components (cached, loaded once)."""
    configure_logging(get_settings().app.debug_mode)
    expense_flow, payment_flow, audit_logger = create_app_components(
        launcher=LinkButtonLauncher(),
    )
    run_async(expense_flow.ledger.load())
    if expense_flow.ledger.load_error is not None:
        audit_logger.log_load_failed(str(expense_flow.ledger.load_error))
    return expense_flow, payment_flow, audit_logger


def report_storage_error(message: str, error: StorageError) -> None:
    """Show a storage failure and keep it in the audit trail."""
    _, _, audit_logger = get_components()
    audit_logger.log_error(type(error).__name__, str(error), {"context": message})
    st.error(f"{message} ({error})")


def money(amount) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    expense_flow, payment_flow, _ = get_components()

    st.sidebar.title("💸 Expense Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Expense", "📜 History", "📷 Scan & Pay"],
        index=0,
    )

    if expense_flow.ledger.load_error is not None:
        st.sidebar.warning(
            "Saved expenses could not be read, so the ledger started empty."
        )

    if page == "📊 Dashboard":
        render_dashboard_page(expense_flow)
    elif page == "➕ Add Expense":
        render_add_page(expense_flow)
    elif page == "📜 History":
        render_history_page(expense_flow)
    elif page == "📷 Scan & Pay":
        render_scan_page(payment_flow)


def render_dashboard_page(expense_flow: ExpenseFlow):
    """Render totals, the category breakdown and recent expenses."""
    st.title("📊 Dashboard")
    summary = expense_flow.dashboard()

    st.metric("Total Spending", money(summary.total))
    st.caption(
        f"{summary.expense_count} "
        f"{'expense' if summary.expense_count == 1 else 'expenses'}"
    )

    if summary.by_category:
        st.subheader("By Category")
        for category, amount in summary.by_category.items():
            col1, col2 = st.columns([3, 1])
            col1.write(category.value)
            col2.write(money(amount))

    st.subheader("Recent Expenses")
    if not summary.recent:
        st.info("No expenses yet. Add your first one from 'Add Expense'.")
    for expense in summary.recent:
        col1, col2 = st.columns([3, 1])
        col1.write(f"**{expense.description}** · {expense.category.value} · {expense.spent_on}")
        col2.write(money(expense.amount))

    if summary.expense_count:
        st.markdown("---")
        confirm = st.checkbox("I want to delete ALL expenses")
        if st.button("🗑️ Clear All", disabled=not confirm):
            try:
                removed = run_async(expense_flow.clear_all(confirmed=confirm))
                st.success(f"Removed {removed} expenses.")
                st.rerun()
            except StorageError as e:
                report_storage_error("Could not clear expenses", e)


def render_add_page(expense_flow: ExpenseFlow):
    """Render the add-expense form."""
    st.title("➕ Add Expense")
    st.markdown("Track a new expense")

    errors = st.session_state.get("form_errors", {})

    with st.form("add_expense", clear_on_submit=False):
        amount = st.text_input(
            f"Amount ({get_settings().app.currency_symbol})",
            placeholder="0.00",
        )
        if "amount" in errors:
            st.error(errors["amount"])

        description = st.text_input("Description", placeholder="e.g., Grocery shopping")
        if "description" in errors:
            st.error(errors["description"])

        spent_on = st.text_input("Date", value=date.today().isoformat(), placeholder="YYYY-MM-DD")
        if "date" in errors:
            st.error(errors["date"])

        category = st.selectbox(
            "Category",
            options=list(Category),
            format_func=lambda c: c.value,
        )

        submitted = st.form_submit_button("Add Expense", type="primary")

    if not submitted:
        return

    try:
        result = run_async(
            expense_flow.submit_expense(amount, description, category, spent_on)
        )
    except StorageError as e:
        report_storage_error("Failed to add expense. Please try again.", e)
        return

    st.session_state.form_errors = result.validation.errors
    if not result.saved:
        st.rerun()

    for warning in result.validation.warnings:
        st.warning(warning)
    st.success(f"Added {result.expense.description} ({money(result.expense.amount)})")


def render_history_page(expense_flow: ExpenseFlow):
    """Render every expense with a category filter."""
    st.title("📜 History")

    selected = st.selectbox(
        "Filter",
        options=["ALL"] + [c.value for c in Category],
    )
    expenses = expense_flow.history(selected)
    st.caption(f"{len(expenses)} {'expense' if len(expenses) == 1 else 'expenses'}")

    if not expenses:
        st.info(
            "No expenses yet" if selected == "ALL"
            else f"No expenses in {selected} category"
        )
        return

    for expense in expenses:
        with st.expander(f"{expense.description} · {money(expense.amount)}"):
            st.write(f"Category: {expense.category.value}")
            st.write(f"Date: {expense.spent_on.isoformat()}")
            confirm = st.checkbox("Confirm delete", key=f"confirm-{expense.id}")
            if st.button("Delete", key=f"delete-{expense.id}", disabled=not confirm):
                try:
                    run_async(expense_flow.delete_expense(expense.id, confirmed=confirm))
                    st.rerun()
                except StorageError as e:
                    report_storage_error("Could not delete expense", e)


def render_scan_page(payment_flow: PaymentFlow):
    """Render the scanned-code entry and payment handoff."""
    st.title("📷 Scan & Pay")
    st.markdown("Paste the text of a scanned UPI QR code.")

    payload = st.text_area("Scanned code", placeholder="upi://pay?pa=...")
    record = st.checkbox("Also record this as an expense")
    category = st.selectbox(
        "Category",
        options=list(Category),
        format_func=lambda c: c.value,
        disabled=not record,
    )

    if not st.button("Pay", type="primary") or not payload:
        return

    try:
        outcome = run_async(
            payment_flow.handle_scan(payload, record_category=category if record else None)
        )
    except StorageError as e:
        report_storage_error("Payment app opened, but the expense could not be saved", e)
        return

    if not outcome.scanned.is_payment:
        st.error(outcome.scanned.message)
    elif not outcome.launched:
        st.error(outcome.handoff.reason)
    else:
        st.success(outcome.scanned.message)
        if outcome.expense is not None:
            st.info(f"Recorded {money(outcome.expense.amount)} under {outcome.expense.category.value}.")
        elif outcome.record_issues:
            st.warning(
                "The payment was not recorded: "
                + "; ".join(issue.message for issue in outcome.record_issues)
            )
        elif record:
            st.info("The code carried no amount, so nothing was recorded.")


if __name__ == "__main__":
    main()
