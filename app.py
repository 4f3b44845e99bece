"""
Finance Tracker - Streamlit Application
Transaction listing, monthly summary and comparison, weekly spending,
budget alerts and AI insights.
"""

import streamlit as st
import pandas as pd
import logging
from datetime import date
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from models import Transaction
from services import (
    Month,
    OllamaInsights,
    TransactionService,
    build_insight_strategy,
    seed_from_csv,
)

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CATEGORIES = [
    "Groceries", "Dining", "Rent", "Utilities", "Transport",
    "Shopping", "Subscriptions", "Health", "Salary", "Other"
]

# Configure Streamlit page
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💸",
    layout="wide"
)


@st.cache_resource
def get_service() -> TransactionService:
    """Initialize the database once per process and build the service."""
    init_db()
    seed_from_csv()
    return TransactionService(insights=build_insight_strategy())


# ==================== HELPER FUNCTIONS ====================
def transactions_to_df(transactions) -> pd.DataFrame:
    """Tabular view of transactions for display."""
    columns = ["id", "date", "merchant", "amount", "category", "notes"]
    return pd.DataFrame([tx.model_dump() for tx in transactions], columns=columns)


def fmt_money(value: float) -> str:
    return f"-${abs(value):,.2f}" if value < 0 else f"${value:,.2f}"


# ==================== SIDEBAR ====================
def render_sidebar(service: TransactionService) -> dict:
    """Render the sidebar filters and return the chosen values."""
    st.sidebar.title("🔎 Filters")

    q = st.sidebar.text_input("Search", placeholder="merchant, category or notes")
    use_dates = st.sidebar.checkbox("Filter by date range")
    date_from = date_to = None
    if use_dates:
        date_from = st.sidebar.date_input("From", value=date.today().replace(day=1))
        date_to = st.sidebar.date_input("To", value=date.today())
    category = st.sidebar.selectbox("Category", [""] + CATEGORIES, format_func=lambda c: c or "All")

    st.sidebar.subheader("🤖 Insights")
    if isinstance(service.insights, OllamaInsights):
        st.sidebar.info(f"LLM: {service.insights.client.get_model_name()}")
    else:
        st.sidebar.info("Rule-based")

    return {"q": q, "date_from": date_from, "date_to": date_to, "category": category}


# ==================== MAIN CONTENT ====================
def render_transactions(service: TransactionService, filters: dict):
    """Render the filtered transaction table with row actions and CSV download."""
    st.subheader("📒 Transactions")

    transactions = service.list_transactions(**filters)
    if not transactions:
        st.info("No transactions match the current filters.")
        return

    st.dataframe(transactions_to_df(transactions), use_container_width=True, hide_index=True)

    st.download_button(
        "⬇️ Export CSV",
        data=service.export_csv(**filters),
        file_name="transactions.csv",
        mime="text/csv"
    )

    with st.expander("Row actions"):
        options = {f"#{tx.id} {tx.date or '—'} {tx.merchant or 'Unknown'} {tx.amount}": tx.id for tx in transactions}
        selected = st.selectbox("Transaction", list(options.keys()))
        col1, col2 = st.columns(2)
        with col1:
            if st.button("📄 Duplicate (dated today)", use_container_width=True):
                copy = service.duplicate_transaction(options[selected])
                if copy:
                    st.success(f"✅ Duplicated as #{copy.id}")
                    st.rerun()
        with col2:
            if st.button("🗑️ Delete", use_container_width=True):
                if service.delete_transaction(options[selected]):
                    st.success("✅ Transaction deleted")
                    st.rerun()
                else:
                    st.error("❌ Transaction no longer exists")


def render_add_transaction_form(service: TransactionService):
    """Render form to add a transaction; income is stored as a negative amount."""
    st.subheader("➕ Add Transaction")

    with st.form("add_transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)

        with col1:
            tx_date = st.date_input("Date", value=date.today())
            merchant = st.text_input("Merchant", placeholder="e.g., Whole Foods")
            kind = st.radio("Kind", ["Expense", "Income"], horizontal=True)

        with col2:
            amount = st.number_input("Amount ($)", min_value=0.0, step=0.01, value=0.0)
            category = st.selectbox("Category", CATEGORIES)
            notes = st.text_input("Notes")

        submitted = st.form_submit_button("Add Transaction", use_container_width=True)

        if submitted:
            signed = -abs(amount) if kind == "Income" else abs(amount)
            created = service.create_transaction(Transaction(
                date=tx_date,
                merchant=merchant or None,
                amount=signed,
                category=category,
                notes=notes or None
            ))
            st.success(f"✅ Added transaction #{created.id}")
            st.rerun()


def render_month_overview(service: TransactionService):
    """Render summary metrics, charts, the change against last month and the insight."""
    st.subheader("📅 Monthly Overview")

    month_label = st.text_input("Month (YYYY-MM)", value=str(Month.of(date.today())))
    try:
        month = Month.parse(month_label)
        month.previous()
    except ValueError as e:
        st.error(f"❌ {e}")
        return

    summary = service.monthly_summary(month)
    previous = service.monthly_summary(month.previous())

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Net Total", fmt_money(summary.total),
                  delta=fmt_money(summary.total - previous.total) if previous.total else None,
                  delta_color="inverse")
    with col2:
        st.metric("Categories", f"{len(summary.by_category)}")
    with col3:
        st.metric("Transactions", f"{len(service.month_transactions(month))}")

    col_left, col_right = st.columns(2)
    with col_left:
        st.markdown("**By Category**")
        if summary.by_category:
            st.bar_chart(pd.Series(summary.by_category, name="amount"))
        else:
            st.info("No data for this month.")
    with col_right:
        st.markdown("**Weekly Spending**")
        weeks = service.weekly_buckets(month)
        st.bar_chart(pd.Series({w.label: w.expense for w in weeks}, name="expense"))

    st.markdown("### 🔁 What changed vs last month")
    comparison = service.month_comparison(month)
    changes = comparison.changes()
    cols = st.columns(3)
    for col, name in zip(cols, ("income", "expense", "net")):
        pct = changes[name]["pct"]
        with col:
            st.metric(
                f"{name.title()} ({month.previous()} → {month})",
                fmt_money(getattr(comparison.current, name)),
                delta=fmt_money(changes[name]["diff"]) + ("" if pct is None else f" ({pct:+.0f}%)"),
                delta_color="inverse" if name == "expense" else "normal"
            )

    st.markdown("### 💡 Insight")
    if st.button("Generate Insight", use_container_width=True):
        with st.spinner("Summarizing..."):
            st.info(service.monthly_insight(month))


def render_budgets(service: TransactionService):
    """Render the budget form and this month's alert for each saved budget."""
    st.subheader("🎯 Budgets & Alerts")

    with st.form("budget_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            category = st.selectbox("Category", CATEGORIES)
        with col2:
            limit = st.number_input("Monthly limit ($)", min_value=0.0, step=10.0, value=0.0)
        if st.form_submit_button("Add / Update", use_container_width=True):
            try:
                budget = service.set_budget(category, limit)
                st.success(f"✅ Saved: {budget.category} → {fmt_money(budget.monthly_limit)}")
            except ValueError as e:
                st.error(f"❌ {e}")

    month = Month.of(date.today())
    alerts = service.budget_alerts(month)
    if not alerts:
        st.info("No budgets to track yet.")
        return

    st.markdown(f"**{month}**")
    icons = {"ok": "🟢", "warn": "🟠", "bad": "🔴"}
    for alert in alerts:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"{icons[alert.level]} **{alert.category}**: "
                f"{fmt_money(alert.spent)} / {fmt_money(alert.limit)} ({alert.pct}%)"
            )
            st.progress(alert.pct / 100)
            if alert.pace == "on":
                st.caption(f"Pacing: should be ≤ {fmt_money(alert.expected)}; you are on track.")
            else:
                st.caption(
                    f"Pacing: should be ≤ {fmt_money(alert.expected)}; "
                    f"you are {fmt_money(abs(alert.delta))} {alert.pace}."
                )
        with col2:
            if st.button("✕ Remove", key=f"remove_budget_{alert.category}"):
                service.remove_budget(alert.category)
                st.rerun()


# ==================== MAIN APP ====================
def main():
    """Main application entry point."""
    st.title("💸 Finance Tracker")
    st.markdown("*Track spending, review months, get a one-line insight*")

    service = get_service()
    filters = render_sidebar(service)

    tab1, tab2, tab3, tab4 = st.tabs([
        "📒 Transactions", "📅 Monthly Overview", "🎯 Budgets", "➕ Add"
    ])

    with tab1:
        render_transactions(service, filters)

    with tab2:
        render_month_overview(service)

    with tab3:
        render_budgets(service)

    with tab4:
        render_add_transaction_form(service)


if __name__ == "__main__":
    main()
