"""
Streamlit Frontend for Finance Tracker

A single-page app over the in-memory backend: sign in, keep track of
expenses, income, budgets and savings goals, and look at the dashboard
and reports.

DESIGN PRINCIPLES:
1. Every page goes through the access gate first
2. Every action ends with a visible notification
3. Deleting always asks for confirmation
4. The UI never talks to the services directly, only to the flows
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional
from urllib.parse import parse_qs, urlsplit

import plotly.graph_objects as go
import streamlit as st

from finance_tracker.config import validate_all_settings
from finance_tracker.formatting import (
    format_currency,
    format_date,
    format_percent,
    month_name,
)
from finance_tracker.guard import ROUTES
from finance_tracker.models.records import (
    BUDGET_CATEGORIES,
    EXPENSE_CATEGORIES,
    RecurringFrequency,
)
from finance_tracker.models.reports import ChartData
from finance_tracker.orchestrator import (
    AppComponents,
    FlowOutcome,
    Notification,
    NotificationLevel,
    create_app_components,
)
from finance_tracker.store.fixtures import DEMO_EMAIL, DEMO_PASSWORD


st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .positive { color: #2e7d32; font-weight: bold; }
    .negative { color: #c62828; font-weight: bold; }
    .neutral { color: #616161; }
</style>
""", unsafe_allow_html=True)


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


# =============================================================================
# NAVIGATION AND NOTIFICATIONS
# =============================================================================

def money(value) -> str:
    return format_currency(value, get_components().settings.app.currency)


def go_to(path: str) -> None:
    st.session_state.path = path
    st.rerun()


def push(notification: Optional[Notification]) -> None:
    """Queue a notification for the next render."""
    if notification is not None:
        st.session_state.setdefault("notifications", []).append(notification)


def show_notifications() -> None:
    for note in st.session_state.pop("notifications", []):
        if note.level == NotificationLevel.ERROR:
            st.error(note.message)
        elif note.level == NotificationLevel.WARNING:
            st.warning(note.message)
        else:
            st.toast(note.message, icon="✅" if note.level == NotificationLevel.SUCCESS else "ℹ️")


def handle_outcome(outcome: FlowOutcome) -> None:
    """Show validation problems, queue the notification and follow redirects."""
    if outcome.validation is not None and not outcome.validation.is_valid:
        for issue in outcome.validation.issues:
            if issue.severity == "error":
                st.error(issue.message)
    if not outcome.success:
        if outcome.validation is not None:
            for message in outcome.validation.warnings:
                st.warning(message)
        invalid = outcome.validation is not None and not outcome.validation.is_valid
        if outcome.notification is not None and not invalid:
            st.error(outcome.notification.message)
        return
    for notification in outcome.notifications():
        push(notification)
    if outcome.redirect_to:
        go_to(outcome.redirect_to)
    st.rerun()


def query_param(path: str, name: str) -> Optional[str]:
    values = parse_qs(urlsplit(path).query).get(name)
    return values[0] if values else None


# =============================================================================
# CHARTS
# =============================================================================

def chart_figure(chart: ChartData, kind: str) -> go.Figure:
    """Plotly figure for a ChartData."""
    fig = go.Figure()
    if kind == "pie":
        series = chart.datasets[0]
        fig.add_trace(go.Pie(
            labels=chart.labels,
            values=series.data,
            marker=dict(colors=series.colors),
            hole=0.4,
        ))
    elif kind == "bar":
        for series in chart.datasets:
            fig.add_trace(go.Bar(
                x=chart.labels,
                y=series.data,
                name=series.label,
                marker_color=series.colors[0] if series.colors else None,
            ))
        fig.update_layout(barmode="group")
        fig.update_yaxes(rangemode="tozero")
    else:
        for series in chart.datasets:
            fig.add_trace(go.Scatter(
                x=chart.labels,
                y=series.data,
                name=series.label,
                mode="lines+markers",
                fill="tozeroy",
                line=dict(color=series.colors[0] if series.colors else None, shape="spline"),
            ))
    fig.update_layout(title=chart.title, height=380)
    return fig


# =============================================================================
# AUTH PAGES
# =============================================================================

def render_login_page(app: AppComponents, path: str):
    st.title("🔐 Login")
    return_url = query_param(path, "returnUrl")
    prefill = query_param(path, "email") or ""

    with st.form("login_form"):
        email = st.text_input("Email", value=prefill)
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login")

    if submitted:
        outcome = run_async(app.auth_flow.login(
            {"email": email, "password": password},
            return_url=return_url,
        ))
        handle_outcome(outcome)

    st.info(f"Demo account: {DEMO_EMAIL} / {DEMO_PASSWORD}")
    if st.button("Create an account"):
        go_to("/register")


def render_register_page(app: AppComponents):
    st.title("📝 Register")

    with st.form("register_form"):
        col1, col2 = st.columns(2)
        first_name = col1.text_input("First name")
        last_name = col2.text_input("Last name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm_password = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Register")

    if submitted:
        outcome = run_async(app.auth_flow.register({
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "password": password,
            "confirm_password": confirm_password,
        }))
        handle_outcome(outcome)

    if st.button("Back to login"):
        go_to("/login")


# =============================================================================
# DASHBOARD AND REPORTS
# =============================================================================

def render_dashboard_page(app: AppComponents, user_id: int):
    st.title("📊 Dashboard")
    summary, notification = run_async(app.dashboard_flow.load(user_id))
    if summary is None:
        st.error(notification.message)
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income this month", money(summary.total_income))
    col2.metric("Expenses this month", money(summary.total_expenses))
    col3.metric("Savings", money(summary.savings))
    col4.metric(
        "Goals",
        summary.total_goals,
        f"{format_percent(summary.goals_progress)} average progress",
        delta_color="off",
    )

    left, right = st.columns(2)
    left.plotly_chart(chart_figure(summary.expenses_by_category, "pie"), use_container_width=True)
    right.plotly_chart(chart_figure(summary.income_vs_expenses, "bar"), use_container_width=True)
    st.plotly_chart(chart_figure(summary.savings_over_time, "line"), use_container_width=True)

    if summary.budget is None:
        st.info(f"No budget for {month_name(summary.month)} {summary.year}.")
        return

    st.markdown(f"### Budget for {month_name(summary.month)} {summary.year}")
    for line in summary.budget.categories:
        spent = summary.category_totals.get(line.category, Decimal("0"))
        ratio = float(spent / line.limit) if line.limit else 0.0
        st.write(
            f"**{line.category}**: {money(spent)} of {money(line.limit)}"
        )
        st.progress(min(ratio, 1.0))


def render_reports_page(app: AppComponents, user_id: int):
    st.title("📈 Reports")
    today = date.today()

    col1, col2 = st.columns(2)
    start_date = col1.date_input("Start date", value=today.replace(day=1))
    end_date = col2.date_input("End date", value=today)

    report, notification = run_async(app.report_flow.generate(user_id, start_date, end_date))
    if report is None:
        st.error(notification.message)
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Total income", money(report.total_income))
    col2.metric("Total expenses", money(report.total_expenses))
    col3.metric("Net savings", money(report.net_savings))

    st.markdown("### Budget vs actual")
    if not report.categories:
        st.info("No spending or budget in this period.")
        return

    rows = [
        {
            "Category": row.category,
            "Budgeted": money(row.budgeted),
            "Spent": money(row.spent),
            "Variance": money(row.variance),
            "Used": format_percent(row.percentage),
            "Status": row.status,
        }
        for row in report.categories
    ]
    st.dataframe(rows, use_container_width=True, hide_index=True)

    for row in report.over_budget:
        st.markdown(
            f"<span class='negative'>Over budget on {row.category} by "
            f"{money(-row.variance)}</span>",
            unsafe_allow_html=True,
        )


# =============================================================================
# RECORD PAGES
# =============================================================================

def confirm_delete(key: str, label: str) -> bool:
    """Two-click delete: the first click asks, the second confirms."""
    pending = st.session_state.get("pending_delete")
    if pending == key:
        st.warning(f"Are you sure you want to delete this {label}?")
        yes, no = st.columns(2)
        if yes.button("Yes, delete", key=f"yes_{key}"):
            st.session_state.pending_delete = None
            return True
        if no.button("Cancel", key=f"no_{key}"):
            st.session_state.pending_delete = None
            st.rerun()
        return False
    if st.button("🗑️ Delete", key=f"del_{key}"):
        st.session_state.pending_delete = key
        st.rerun()
    return False


def editing(kind: str) -> Optional[int]:
    return st.session_state.get(f"editing_{kind}")


def set_editing(kind: str, record_id: Optional[int]) -> None:
    st.session_state[f"editing_{kind}"] = record_id


def render_expenses_page(app: AppComponents, user_id: int):
    st.title("💸 Expenses")
    flow = app.expense_flow
    expenses, notification = run_async(flow.load(user_id))
    if notification:
        st.error(notification.message)

    editing_id = editing("expense")
    current = next((e for e in expenses if e.id == editing_id), None)

    with st.form("expense_form", clear_on_submit=True):
        st.markdown("### Edit expense" if current else "### Add expense")
        col1, col2 = st.columns(2)
        amount = col1.number_input(
            "Amount", min_value=0.0, step=0.01,
            value=float(current.amount) if current else 0.0,
        )
        category = col2.selectbox(
            "Category", EXPENSE_CATEGORIES,
            index=EXPENSE_CATEGORIES.index(current.category)
            if current and current.category in EXPENSE_CATEGORIES else 0,
        )
        description = st.text_input("Description", value=current.description if current else "")
        spent_on = st.date_input("Date", value=current.date if current else date.today())
        col3, col4 = st.columns(2)
        is_recurring = col3.checkbox("Recurring", value=current.is_recurring if current else False)
        frequencies = [f.value for f in RecurringFrequency]
        frequency = col4.selectbox(
            "Frequency", frequencies,
            index=frequencies.index(current.recurring_frequency.value)
            if current and current.recurring_frequency else frequencies.index("monthly"),
        )
        submitted = st.form_submit_button("Update" if current else "Add")

    if submitted:
        outcome = run_async(flow.save(user_id, {
            "amount": amount,
            "category": category,
            "description": description,
            "date": spent_on,
            "is_recurring": is_recurring,
            "recurring_frequency": frequency,
        }, editing_id=editing_id))
        if outcome.success:
            set_editing("expense", None)
        handle_outcome(outcome)
    if current and st.button("Cancel edit"):
        set_editing("expense", None)
        st.rerun()

    st.markdown("---")
    st.markdown(f"**Total:** {money(sum((e.amount for e in expenses), Decimal('0')))}")
    for expense in expenses:
        cols = st.columns([2, 2, 4, 2, 1, 1])
        cols[0].write(format_date(expense.date))
        cols[1].write(expense.category)
        recurring = f" 🔁 {expense.recurring_frequency.value}" if expense.is_recurring and expense.recurring_frequency else ""
        cols[2].write(f"{expense.description}{recurring}")
        cols[3].write(money(expense.amount))
        if cols[4].button("✏️", key=f"edit_expense_{expense.id}"):
            set_editing("expense", expense.id)
            st.rerun()
        with cols[5]:
            if confirm_delete(f"expense_{expense.id}", "expense"):
                handle_outcome(run_async(flow.delete(expense.id, user_id)))


def render_income_page(app: AppComponents, user_id: int):
    st.title("💵 Income")
    flow = app.income_flow
    incomes, notification = run_async(flow.load(user_id))
    if notification:
        st.error(notification.message)

    editing_id = editing("income")
    current = next((i for i in incomes if i.id == editing_id), None)

    with st.form("income_form", clear_on_submit=True):
        st.markdown("### Edit income" if current else "### Add income")
        col1, col2 = st.columns(2)
        amount = col1.number_input(
            "Amount", min_value=0.0, step=0.01,
            value=float(current.amount) if current else 0.0,
        )
        source = col2.text_input("Source", value=current.source if current else "")
        description = st.text_input(
            "Description", value=(current.description or "") if current else ""
        )
        received_on = st.date_input("Date", value=current.date if current else date.today())
        submitted = st.form_submit_button("Update" if current else "Add")

    if submitted:
        outcome = run_async(flow.save(user_id, {
            "amount": amount,
            "source": source,
            "description": description,
            "date": received_on,
        }, editing_id=editing_id))
        if outcome.success:
            set_editing("income", None)
        handle_outcome(outcome)

    st.markdown("---")
    st.markdown(f"**Total:** {money(sum((i.amount for i in incomes), Decimal('0')))}")
    for income in incomes:
        cols = st.columns([2, 3, 3, 2, 1, 1])
        cols[0].write(format_date(income.date))
        cols[1].write(income.source)
        cols[2].write(income.description or "")
        cols[3].write(money(income.amount))
        if cols[4].button("✏️", key=f"edit_income_{income.id}"):
            set_editing("income", income.id)
            st.rerun()
        with cols[5]:
            if confirm_delete(f"income_{income.id}", "income"):
                handle_outcome(run_async(flow.delete(income.id, user_id)))


def render_budgets_page(app: AppComponents, user_id: int):
    st.title("🗂️ Budgets")
    flow = app.budget_flow
    budgets, notification = run_async(flow.load(user_id))
    if notification:
        st.error(notification.message)

    editing_id = editing("budget")
    current = next((b for b in budgets if b.id == editing_id), None)
    today = date.today()
    settings = app.settings.app

    st.markdown("### Edit budget" if current else "### Create budget")
    col1, col2, col3 = st.columns(3)
    month = col1.selectbox(
        "Month", list(range(1, 13)),
        index=(current.month if current else today.month) - 1,
        format_func=month_name,
    )
    year = col2.number_input(
        "Year",
        min_value=settings.min_budget_year,
        max_value=settings.max_budget_year,
        value=current.year if current else today.year,
        step=1,
    )
    total_income = col3.number_input(
        "Expected income", min_value=0.0, step=0.01,
        value=float(current.total_income) if current else 0.0,
    )

    initial = [
        {"category": c.category, "limit": float(c.limit)} for c in current.categories
    ] if current else []
    initial = initial or [{"category": None, "limit": None}]
    lines = st.data_editor(
        initial,
        num_rows="dynamic",
        column_config={
            "category": st.column_config.SelectboxColumn("Category", options=BUDGET_CATEGORIES),
            "limit": st.column_config.NumberColumn("Limit", min_value=0.0, step=0.01),
        },
        key=f"budget_lines_{editing_id}",
        use_container_width=True,
    )

    if st.button("Update budget" if current else "Create budget"):
        outcome = run_async(flow.save(user_id, {
            "month": int(month),
            "year": int(year),
            "total_income": total_income,
            "categories": [line for line in lines if line.get("category")],
        }, editing_id=editing_id))
        if outcome.success:
            set_editing("budget", None)
        handle_outcome(outcome)

    st.markdown("---")
    for budget in budgets:
        with st.expander(
            f"{month_name(budget.month)} {budget.year}: "
            f"{money(budget.total_budgeted)} of {money(budget.total_income)}"
        ):
            for line in budget.categories:
                st.write(f"{line.category}: {money(line.limit)}")
            col1, col2 = st.columns(2)
            if col1.button("✏️ Edit", key=f"edit_budget_{budget.id}"):
                set_editing("budget", budget.id)
                st.rerun()
            with col2:
                if confirm_delete(f"budget_{budget.id}", "budget"):
                    handle_outcome(run_async(flow.delete(budget.id, user_id)))


def render_goals_page(app: AppComponents, user_id: int):
    st.title("🎯 Goals")
    flow = app.goal_flow
    goals, notification = run_async(flow.load(user_id))
    if notification:
        st.error(notification.message)

    editing_id = editing("goal")
    current = next((g for g in goals if g.id == editing_id), None)

    with st.form("goal_form", clear_on_submit=True):
        st.markdown("### Edit goal" if current else "### Create goal")
        title = st.text_input("Title", value=current.title if current else "")
        description = st.text_area(
            "Description", value=(current.description or "") if current else ""
        )
        col1, col2, col3 = st.columns(3)
        target_amount = col1.number_input(
            "Target amount", min_value=0.0, step=0.01,
            value=float(current.target_amount) if current else 0.0,
        )
        current_amount = col2.number_input(
            "Saved so far", min_value=0.0, step=0.01,
            value=float(current.current_amount) if current else 0.0,
        )
        target_date = col3.date_input(
            "Target date", value=current.target_date if current else date.today()
        )
        submitted = st.form_submit_button("Update" if current else "Create")

    if submitted:
        outcome = run_async(flow.save(user_id, {
            "title": title,
            "description": description,
            "target_amount": target_amount,
            "current_amount": current_amount,
            "target_date": target_date,
        }, editing_id=editing_id))
        if outcome.success:
            set_editing("goal", None)
        handle_outcome(outcome)

    st.markdown("---")
    for goal in goals:
        st.markdown(f"#### {goal.title}" + (" ✅" if goal.is_completed else ""))
        if goal.description:
            st.caption(goal.description)
        st.progress(goal.progress_percent / 100)
        st.write(
            f"{money(goal.current_amount)} of {money(goal.target_amount)} "
            f"by {format_date(goal.target_date)} ({format_percent(goal.progress_percent)})"
        )
        cols = st.columns([3, 1, 1, 1])
        amount = cols[0].number_input(
            "Amount", step=10.0, value=0.0, key=f"contrib_{goal.id}", label_visibility="collapsed"
        )
        if cols[1].button("➕ Add", key=f"add_goal_{goal.id}") and amount:
            handle_outcome(run_async(flow.contribute(goal.id, Decimal(str(amount)), user_id)))
        if cols[2].button("✏️", key=f"edit_goal_{goal.id}"):
            set_editing("goal", goal.id)
            st.rerun()
        with cols[3]:
            if confirm_delete(f"goal_{goal.id}", "goal"):
                handle_outcome(run_async(flow.delete(goal.id, user_id)))


# =============================================================================
# MAIN
# =============================================================================

PAGES = {
    "dashboard": render_dashboard_page,
    "expenses": render_expenses_page,
    "income": render_income_page,
    "budgets": render_budgets_page,
    "goals": render_goals_page,
    "reports": render_reports_page,
}


def render_sidebar(app: AppComponents, path: str):
    st.sidebar.title("💰 Finance Tracker")
    user = app.auth_flow.current_user
    if user is None:
        return

    st.sidebar.markdown(f"Signed in as **{user.full_name}**")
    st.sidebar.markdown("---")
    protected = [p for p, info in ROUTES.items() if info.protected]
    current = path.split("?", 1)[0]
    choice = st.sidebar.radio(
        "Navigate to:",
        protected,
        index=protected.index(current) if current in protected else 0,
        format_func=lambda p: ROUTES[p].title,
    )
    if choice != current:
        go_to(choice)

    st.sidebar.markdown("---")
    if st.sidebar.button("Logout"):
        handle_outcome(run_async(app.auth_flow.logout()))

    with st.sidebar.expander("Settings"):
        for name, ok in validate_all_settings().items():
            if not name.endswith("_error"):
                st.write(f"{'✅' if ok else '❌'} {name}")


def main():
    """Main application entry point."""
    app = get_components()
    path = st.session_state.setdefault("path", "/dashboard")

    decision = run_async(app.auth_flow.navigate(path))
    if decision.redirect_to:
        go_to(decision.redirect_to)

    render_sidebar(app, path)
    show_notifications()

    route = ROUTES[path.split("?", 1)[0]]
    if route.view == "login":
        render_login_page(app, path)
    elif route.view == "register":
        render_register_page(app)
    else:
        PAGES[route.view](app, app.auth_flow.current_user.id)


if __name__ == "__main__":
    main()
