"""
Streamlit Frontend for Finance Tracker

A single-user front end over FinanceActions. Every read and write goes
through an action, so the UI gets exactly the same ownership checks,
validation and audit trail as any other caller.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages straight from the action envelope
3. No hidden actions: nothing is saved without pressing a button

The signed-in user is LOCAL_USER_ID from the environment. With no user
configured every action is refused as unauthorized.
"""

import asyncio
from datetime import datetime, time, timezone

import streamlit as st

from finance_tracker.actions import ActionResult, FinanceActions
from finance_tracker.auth import RequestContext
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.models import TransactionType
from finance_tracker.orchestrator import AppComponents, create_app_components


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def request_context() -> RequestContext:
    """A fresh context per interaction, acting as the configured user."""
    user_id = get_settings().app.local_user_id
    if user_id:
        return RequestContext.for_user(user_id)
    return RequestContext()


def show_error(result: ActionResult) -> None:
    """Render a failed envelope."""
    error = result.error
    st.error(f"❌ {error.message}")
    for issue in error.issues:
        st.caption(f"{issue.field}: {issue.message}")


def main():
    """Main application entry point."""
    try:
        components = get_components()
    except Exception as e:
        st.error(f"Failed to initialize storage: {e}")
        st.stop()

    actions = components.actions

    # Sidebar navigation
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏦 Accounts", "🏷️ Categories", "💸 Transactions", "⚙️ Settings"],
        index=2,
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"Storage: {components.backend}")

    # Route to appropriate page
    if page == "🏦 Accounts":
        render_accounts_page(actions)
    elif page == "🏷️ Categories":
        render_categories_page(actions)
    elif page == "💸 Transactions":
        render_transactions_page(actions)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_accounts_page(actions: FinanceActions):
    """Render the accounts page."""
    st.title("🏦 Accounts")

    with st.form("new_account", clear_on_submit=True):
        st.markdown("### Add Account")
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", placeholder="e.g. Cash, HDFC Savings")
            account_type = st.selectbox("Type", ["cash", "bank", "card", "wallet"])
        with col2:
            currency = st.text_input("Currency", placeholder="e.g. AED")
            balance = st.number_input("Starting balance", value=0.0, step=100.0)

        if st.form_submit_button("➕ Add Account", type="primary"):
            result = run_async(actions.create_account(request_context(), {
                "name": name,
                "type": account_type,
                "currency": currency or None,
                "startingBalance": balance,
            }))
            if result.success:
                st.success(f"✅ Added {result.data.account.name}")
            else:
                show_error(result)

    st.markdown("---")
    include_archived = st.checkbox("Show archived accounts")
    result = run_async(actions.list_accounts(
        request_context(), {"includeArchived": include_archived}
    ))
    if not result.success:
        show_error(result)
        return

    if not result.data.items:
        st.info("No accounts yet. Add your first one above.")
        return

    for account in result.data.items:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            label = f"**{account.name}**"
            if account.is_archived:
                label += " _(archived)_"
            st.markdown(label)
            st.caption(account.type or "")
        with col2:
            if account.starting_balance is not None:
                st.markdown(f"{account.starting_balance} {account.currency or ''}")
        with col3:
            if not account.is_archived and st.button("Archive", key=f"archive_{account.id}"):
                archived = run_async(actions.archive_account(
                    request_context(), {"id": account.id}
                ))
                if archived.success:
                    st.rerun()
                show_error(archived)


def render_categories_page(actions: FinanceActions):
    """Render the categories page."""
    st.title("🏷️ Categories")

    with st.form("new_category", clear_on_submit=True):
        st.markdown("### Add Category")
        col1, col2, col3 = st.columns(3)
        with col1:
            name = st.text_input("Name", placeholder="e.g. Groceries")
        with col2:
            category_type = st.selectbox(
                "For",
                options=[None] + list(TransactionType),
                format_func=lambda x: "Any" if x is None else x.value.title(),
            )
        with col3:
            icon = st.text_input("Icon", placeholder="🛒")

        if st.form_submit_button("➕ Add Category", type="primary"):
            result = run_async(actions.create_category(request_context(), {
                "name": name,
                "type": category_type.value if category_type else None,
                "icon": icon or None,
            }))
            if result.success:
                st.success(f"✅ Added {result.data.category.name}")
            else:
                show_error(result)

    st.markdown("---")
    include_archived = st.checkbox("Show archived categories")
    result = run_async(actions.list_categories(
        request_context(), {"includeArchived": include_archived}
    ))
    if not result.success:
        show_error(result)
        return

    if not result.data.items:
        st.info("No categories yet.")
        return

    for category in result.data.items:
        col1, col2 = st.columns([4, 1])
        with col1:
            label = f"{category.icon or '•'} **{category.name}**"
            if category.type:
                label += f" · {category.type.value}"
            if category.is_archived:
                label += " _(archived)_"
            st.markdown(label)
        with col2:
            if not category.is_archived and st.button("Archive", key=f"archive_{category.id}"):
                archived = run_async(actions.archive_category(
                    request_context(), {"id": category.id}
                ))
                if archived.success:
                    st.rerun()
                show_error(archived)


def render_transactions_page(actions: FinanceActions):
    """Render the transactions page."""
    st.title("💸 Transactions")

    context = request_context()
    accounts = run_async(actions.list_accounts(context))
    categories = run_async(actions.list_categories(context))
    if not accounts.success:
        show_error(accounts)
        return

    account_names = {a.id: a.name for a in accounts.data.items}
    category_names = {c.id: c.name for c in categories.data.items} if categories.success else {}

    with st.form("new_transaction", clear_on_submit=True):
        st.markdown("### Record Transaction")
        col1, col2, col3 = st.columns(3)
        with col1:
            tx_type = st.selectbox(
                "Type",
                options=list(TransactionType),
                format_func=lambda x: x.value.title(),
            )
            amount = st.number_input("Amount", min_value=0.0, step=10.0)
        with col2:
            account_id = st.selectbox(
                "Account",
                options=[None] + list(account_names),
                format_func=lambda x: "None" if x is None else account_names[x],
            )
            category_id = st.selectbox(
                "Category",
                options=[None] + list(category_names),
                format_func=lambda x: "None" if x is None else category_names[x],
            )
        with col3:
            tx_date = st.date_input("Date", value=datetime.now(timezone.utc).date())
            description = st.text_input("Description")

        if st.form_submit_button("💾 Save", type="primary"):
            result = run_async(actions.create_transaction(request_context(), {
                "type": tx_type.value,
                "amount": amount,
                "accountId": account_id,
                "categoryId": category_id,
                "transactionDate": datetime.combine(tx_date, time(), tzinfo=timezone.utc),
                "description": description or None,
            }))
            if result.success:
                st.success("✅ Transaction saved")
            else:
                show_error(result)

    st.markdown("---")

    # Filters
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        account_filter = st.selectbox(
            "Filter by Account",
            options=[""] + list(account_names),
            format_func=lambda x: "All Accounts" if not x else account_names[x],
        )
    with col2:
        category_filter = st.selectbox(
            "Filter by Category",
            options=[""] + list(category_names),
            format_func=lambda x: "All Categories" if not x else category_names[x],
        )
    with col3:
        type_filter = st.selectbox(
            "Filter by Type",
            options=[""] + [t.value for t in TransactionType],
            format_func=lambda x: "All Types" if not x else x.title(),
        )
    with col4:
        page = st.number_input("Page", min_value=1, value=1, step=1)

    result = run_async(actions.list_transactions(request_context(), {
        "accountId": account_filter,
        "categoryId": category_filter,
        "type": type_filter,
        "page": int(page),
        "pageSize": 20,
    }))
    if not result.success:
        show_error(result)
        return

    if not result.data.items:
        st.info("📋 No transactions on this page.")
        return

    for tx in result.data.items:
        col1, col2, col3, col4 = st.columns([2, 3, 2, 1])
        with col1:
            st.markdown(tx.transaction_date.strftime("%d %b %Y"))
        with col2:
            st.markdown(f"**{tx.description or tx.type.value.title()}**")
            st.caption(
                f"{account_names.get(tx.account_id, '-')} · "
                f"{category_names.get(tx.category_id, '-')}"
            )
        with col3:
            sign = "-" if tx.type == TransactionType.EXPENSE else ""
            st.markdown(f"{sign}{tx.amount} {tx.currency or ''}")
        with col4:
            if st.button("🗑️", key=f"delete_{tx.id}"):
                deleted = run_async(actions.delete_transaction(
                    request_context(), {"id": tx.id}
                ))
                if deleted.success:
                    st.rerun()
                show_error(deleted)

    st.caption(f"Page {result.data.page} · {result.data.total} shown")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Application", "app"),
        ("Database (SQL storage)", "database"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    user_id = get_settings().app.local_user_id
    if user_id:
        st.info(f"Signed in as `{user_id}`")
    else:
        st.warning("No LOCAL_USER_ID set: every action will be refused.")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
