#frontend/streamlit_app.py

import os
from datetime import date

import pandas as pd
import plotly.express as px
import requests
import streamlit as st

# ---------------- Page config ----------------
st.set_page_config(page_title="WalletWise", layout="wide", page_icon="💶")

API_BASE = os.environ.get("WALLETWISE_API", "http://localhost:5000")

CATEGORIES = ["Alimentação", "Transportes", "Habitação", "Saúde", "Educação", "Lazer", "Outros"]
TIME_RANGES = {"Hoje": "today", "Esta Semana": "week", "Este Mês": "month", "Este Ano": "year"}
GOAL_COLORS = {
    "bg-blue-500": "#3b82f6", "bg-green-500": "#22c55e", "bg-yellow-500": "#eab308",
    "bg-red-500": "#ef4444", "bg-purple-500": "#a855f7", "bg-pink-500": "#ec4899",
    "bg-indigo-500": "#6366f1",
}


# ---------------- Helpers ----------------
def safe_json(resp):
    try:
        return resp.json()
    except ValueError:
        return None


def api_request(method, path, token=None, json=None, params=None, timeout=30):
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    url = API_BASE.rstrip("/") + path
    try:
        return requests.request(method.upper(), url, headers=headers, json=json, params=params, timeout=timeout)
    except requests.RequestException as e:
        st.error(f"❌ Connection failed: {e}")
        return None


def error_message(resp, default):
    payload = safe_json(resp) if resp is not None else None
    if not payload:
        return default
    details = payload.get("details") or []
    message = payload.get("error") or default
    return message + ("".join(f"\n- {d}" for d in details) if details else "")


def money(value):
    amount = float(value or 0)
    text = f"{abs(amount):,.2f}".replace(",", " ").replace(".", ",").replace(" ", ".")
    return f"{'-' if amount < 0 else ''}{text} €"


def authed(method, path, **kwargs):
    return api_request(method, path, token=st.session_state.token, **kwargs)


# ---------------- Session State ----------------
def init_session_state():
    defaults = {
        "token": None,
        "refresh_token": None,
        "user": None,
        "page": 0,
        "editing_tx": None,
        "editing_goal": None,
        "analysis": None,
        "chat": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def clear_session():
    for key in ["token", "refresh_token", "user", "editing_tx", "editing_goal", "analysis", "chat"]:
        st.session_state[key] = None
    st.session_state.page = 0


init_session_state()


# ---------------- Sidebar: Account ----------------
def handle_login(email, password):
    r = api_request("POST", "/auth/login", json={"email": email, "password": password})
    if r is None:
        return
    if r.status_code != 200:
        st.error(error_message(r, "❌ Login failed"))
        return
    payload = safe_json(r) or {}
    st.session_state.token = payload.get("access_token")
    st.session_state.refresh_token = payload.get("refresh_token")
    st.session_state.user = payload.get("user")
    st.success("✅ Bem-vindo de volta!")
    st.rerun()


def handle_register(first_name, last_name, email, password, confirm):
    r = api_request("POST", "/auth/register", json={
        "first_name": first_name, "last_name": last_name, "email": email,
        "password": password, "confirm_password": confirm,
    })
    if r is None:
        return
    payload = safe_json(r) or {}
    if r.status_code != 201:
        st.error(error_message(r, "❌ Could not create the account"))
    elif payload.get("profile_created"):
        st.success(payload.get("message"))
    else:
        st.warning(payload.get("warning"))


def render_sidebar():
    with st.sidebar:
        st.title("🔐 Conta")

        if st.session_state.token:
            user = st.session_state.user or {}
            st.success(f"Sessão iniciada como **{user.get('email')}**")
            if st.button("🚪 Sair", use_container_width=True):
                authed("POST", "/auth/logout")
                clear_session()
                st.rerun()
            with st.expander("🔑 Alterar palavra-passe"):
                with st.form("password_form", clear_on_submit=True):
                    new_pw = st.text_input("Nova palavra-passe", type="password")
                    confirm_pw = st.text_input("Confirmar palavra-passe", type="password")
                    if st.form_submit_button("Atualizar"):
                        r = authed("POST", "/auth/password", json={
                            "password": new_pw, "confirm_password": confirm_pw,
                            "refresh_token": st.session_state.refresh_token,
                        })
                        if r is not None and r.status_code == 200:
                            clear_session()
                            st.success("Palavra-passe atualizada. Inicia sessão novamente.")
                        else:
                            st.error(error_message(r, "Não foi possível atualizar a palavra-passe"))
            return

        mode = st.radio("Ação", ["Entrar", "Criar conta", "Recuperar"], horizontal=True)
        if mode == "Entrar":
            with st.form("login_form"):
                email = st.text_input("📧 Email")
                password = st.text_input("🔒 Palavra-passe", type="password")
                if st.form_submit_button("Entrar", use_container_width=True):
                    if email and password:
                        handle_login(email, password)
                    else:
                        st.warning("Please enter both email and password")
        elif mode == "Criar conta":
            with st.form("register_form"):
                col1, col2 = st.columns(2)
                first_name = col1.text_input("Primeiro Nome")
                last_name = col2.text_input("Último Nome")
                email = st.text_input("📧 Email")
                password = st.text_input("🔒 Palavra-passe", type="password")
                confirm = st.text_input("🔒 Confirmar palavra-passe", type="password")
                st.caption("Mínimo 6 caracteres, um número, uma maiúscula e um caractere especial.")
                if st.form_submit_button("Criar conta", use_container_width=True):
                    handle_register(first_name, last_name, email, password, confirm)
        else:
            with st.form("reset_form"):
                email = st.text_input("📧 Email")
                if st.form_submit_button("Enviar email", use_container_width=True):
                    r = api_request("POST", "/auth/password-reset", json={"email": email})
                    if r is not None and r.status_code == 200:
                        st.success("Email enviado. Verifica a tua caixa de entrada.")
                    else:
                        st.error(error_message(r, "Erro ao enviar email"))


# ---------------- Dashboard ----------------
def render_stats():
    r = authed("GET", "/transactions/stats")
    if r is None or r.status_code != 200:
        st.error(error_message(r, "Não foi possível atualizar o painel."))
        return None
    stats = (safe_json(r) or {}).get("stats", {})

    income = float(stats.get("monthly_income", 0))
    expenses = float(stats.get("monthly_expenses", 0))
    prev_income = float(stats.get("previous_month_income", 0))
    prev_expenses = float(stats.get("previous_month_expenses", 0))

    col1, col2, col3 = st.columns(3)
    col1.metric("Saldo Total", money(stats.get("total_balance")))
    col2.metric("Receitas do Mês", money(income), delta=f"vs {money(prev_income)} mês anterior",
                delta_color="normal" if income > prev_income else "inverse")
    col3.metric("Despesas do Mês", money(expenses), delta=f"vs {money(prev_expenses)} mês anterior",
                delta_color="inverse" if expenses > prev_expenses else "normal")
    return stats


def render_filters():
    col1, col2, col3, col4 = st.columns([1, 1, 1, 1])
    label = col1.selectbox("⏰ Período", list(TIME_RANGES), index=2)
    r = api_request("GET", f"/transactions/time-ranges/{TIME_RANGES[label]}")
    start, end = date.today().replace(day=1), date.today()
    if r is not None and r.status_code == 200:
        payload = safe_json(r) or {}
        start, end = date.fromisoformat(payload["start"]), date.fromisoformat(payload["end"])
    picked = col2.date_input("📅 Datas", value=(start, end))
    if isinstance(picked, (list, tuple)) and len(picked) == 2:
        start, end = picked
    category = col3.selectbox("Categoria", ["all"] + CATEGORIES,
                              format_func=lambda c: "Todas as categorias" if c == "all" else c)
    search = col4.text_input("🔍 Pesquisar transações...")
    return {"start": start.isoformat(), "end": end.isoformat(), "category": category, "search": search}


def transaction_form(key, existing=None):
    existing = existing or {}
    with st.form(key, clear_on_submit=existing == {}):
        col_a, col_b = st.columns(2)
        description = col_a.text_input("📝 Descrição", value=existing.get("description", ""))
        amount = col_a.number_input("💰 Valor", min_value=0.0, step=1.0, format="%.2f",
                                    value=float(existing.get("amount", 0) or 0))
        kinds = ["expense", "income"]
        kind = col_b.selectbox("Tipo", kinds, index=kinds.index(existing.get("type", "expense")),
                               format_func=lambda k: "Despesa" if k == "expense" else "Receita")
        category_index = CATEGORIES.index(existing["category"]) if existing.get("category") in CATEGORIES else 0
        category = col_b.selectbox("Categoria", CATEGORIES, index=category_index)
        tx_date = st.date_input("📅 Data", value=date.fromisoformat(existing["date"]) if existing.get("date") else date.today())
        submitted = st.form_submit_button("💾 Guardar", use_container_width=True)
    if not submitted:
        return None
    return {"description": description, "amount": f"{amount:.2f}", "type": kind,
            "category": category, "date": tx_date.isoformat()}


def render_transactions(filters):
    st.subheader("💳 Transações")

    with st.expander("➕ Nova Transação"):
        payload = transaction_form("new_tx")
        if payload:
            r = authed("POST", "/transactions", json=payload)
            if r is not None and r.status_code == 201:
                st.success("Transação criada com sucesso!")
                st.rerun()
            else:
                st.error(error_message(r, "Erro ao guardar transação"))

    params = dict(filters, page=st.session_state.page)
    r = authed("GET", "/transactions", params=params)
    if r is None or r.status_code != 200:
        st.error(error_message(r, "Não foi possível carregar as transações."))
        return
    result = safe_json(r) or {}
    rows = result.get("transactions", [])
    if not rows:
        st.info("💳 Sem transações no período selecionado.")
        return

    for tx in rows:
        col1, col2, col3, col4, col5 = st.columns([2, 4, 2, 2, 2])
        col1.write(date.fromisoformat(tx["date"]).strftime("%d/%m/%Y"))
        col2.write(f"**{tx['description']}**  \n{tx['category']}")
        sign = "+" if tx["type"] == "income" else "-"
        col3.write(f"{sign}{money(tx['amount'])}")
        if col4.button("✏️ Editar", key=f"edit_{tx['id']}"):
            st.session_state.editing_tx = tx
        if col5.button("🗑️ Remover", key=f"del_{tx['id']}"):
            d = authed("DELETE", f"/transactions/{tx['id']}")
            if d is not None and d.status_code == 200:
                st.success("A transação foi removida com sucesso.")
                st.rerun()
            else:
                st.error(error_message(d, "Não foi possível remover a transação."))

    page, page_count = result.get("page", 0), result.get("page_count", 1)
    col_prev, col_info, col_next = st.columns([1, 2, 1])
    if col_prev.button("◀", disabled=page <= 0):
        st.session_state.page = page - 1
        st.rerun()
    col_info.caption(f"Página {page + 1} de {max(page_count, 1)} ({result.get('total', 0)} transações)")
    if col_next.button("▶", disabled=page + 1 >= page_count):
        st.session_state.page = page + 1
        st.rerun()

    editing = st.session_state.editing_tx
    if editing:
        st.markdown("#### ✏️ Editar transação")
        payload = transaction_form(f"edit_form_{editing['id']}", editing)
        if payload:
            r = authed("PUT", f"/transactions/{editing['id']}", json=payload)
            if r is not None and r.status_code == 200:
                st.session_state.editing_tx = None
                st.success("Transação atualizada com sucesso!")
                st.rerun()
            else:
                st.error(error_message(r, "Erro ao guardar transação"))


def render_export(filters):
    r = authed("GET", "/transactions/export", params=filters)
    if r is not None and r.status_code == 200:
        filename = f"transacoes_{filters['start']}.csv"
        st.download_button("⬇️ Exportar CSV", data=r.content, file_name=filename, mime="text/csv")
    else:
        st.button("⬇️ Exportar CSV", disabled=True, help=error_message(r, "Sem dados para exportar"))


def render_category_chart(filters):
    st.subheader("📊 Distribuição por Categoria")
    r = authed("GET", "/transactions/categories", params=filters)
    rows = (safe_json(r) or {}).get("by_category", []) if r is not None and r.status_code == 200 else []
    if not rows:
        st.info("Sem despesas no período selecionado.")
        return
    cat_df = pd.DataFrame(rows)
    cat_df["total"] = pd.to_numeric(cat_df["total"])
    fig_pie = px.pie(cat_df, names="category", values="total", hole=0.4)
    st.plotly_chart(fig_pie, use_container_width=True)


# ---------------- Goals ----------------
def render_goals():
    st.subheader("🎯 Metas Financeiras")
    r = authed("GET", "/goals")
    if r is None or r.status_code != 200:
        st.error(error_message(r, "Não foi possível carregar as suas metas financeiras."))
        return
    goals = (safe_json(r) or {}).get("goals", [])

    for goal in goals:
        col1, col2, col3 = st.columns([6, 1, 1])
        with col1:
            st.markdown(f"**{goal['name']}** · {money(goal['current_amount'])} / {money(goal['target_amount'])} "
                        f"({goal['progress']:.1f}%)")
            st.progress(min(goal["progress"], 100.0) / 100)
        if col2.button("✏️", key=f"edit_goal_{goal['id']}"):
            st.session_state.editing_goal = goal
        if col3.button("🗑️", key=f"del_goal_{goal['id']}"):
            d = authed("DELETE", f"/goals/{goal['id']}")
            if d is not None and d.status_code == 200:
                st.rerun()
            st.error(error_message(d, "Não foi possível remover a meta."))

    editing = st.session_state.editing_goal or {}
    with st.form("goal_form", clear_on_submit=True):
        st.markdown("#### " + ("Editar Meta" if editing else "Nova Meta"))
        name = st.text_input("Nome", value=editing.get("name", ""))
        target = st.number_input("Valor alvo", min_value=0.0, step=50.0,
                                 value=float(editing.get("target_amount", 0) or 0))
        current = st.number_input("Valor atual", min_value=0.0, step=10.0,
                                  value=float(editing.get("current_amount", 0) or 0))
        colors = list(GOAL_COLORS)
        color = st.selectbox("Cor", colors, index=colors.index(editing["color"]) if editing.get("color") in colors else 0)
        if st.form_submit_button("💾 Guardar"):
            payload = {"name": name, "target_amount": f"{target:.2f}", "current_amount": f"{current:.2f}", "color": color}
            if editing:
                r = authed("PUT", f"/goals/{editing['id']}", json=payload)
            else:
                r = authed("POST", "/goals", json=payload)
            if r is not None and r.status_code in (200, 201):
                st.session_state.editing_goal = None
                st.rerun()
            else:
                st.error(error_message(r, "Não foi possível guardar a meta."))


# ---------------- Assistant ----------------
def render_analysis(filters):
    st.subheader("💡 Análise Inteligente")
    if st.button("🔄 Atualizar análise"):
        with st.spinner("A analisar..."):
            r = authed("POST", "/assistant/analysis", params=filters, timeout=90)
            if r is not None and r.status_code == 200:
                st.session_state.analysis = (safe_json(r) or {}).get("analysis")
            else:
                st.error(error_message(r, "Não foi possível gerar a análise financeira."))

    analysis = st.session_state.analysis
    if not analysis:
        return
    if analysis.get("notice"):
        st.info(analysis["notice"])
    for title, key, show in [("📈 Análises", "insights", st.info),
                             ("✅ Recomendações", "recommendations", st.success),
                             ("⚠️ Alertas", "alerts", st.warning)]:
        if analysis.get(key):
            st.markdown(f"**{title}**")
            for item in analysis[key]:
                show(item)


def render_chat(filters):
    st.subheader("💬 Chat Financeiro")
    if st.session_state.chat is None or st.button("↺ Reiniciar conversa"):
        r = authed("GET", "/assistant/chat")
        st.session_state.chat = (safe_json(r) or {}).get("messages", []) if r is not None else []

    for message in st.session_state.chat:
        with st.chat_message(message["role"]):
            st.write(message["content"])

    question = st.chat_input("Escreve a tua pergunta...")
    if question:
        r = authed("POST", "/assistant/chat", params=filters, timeout=90,
                   json={"question": question, "history": st.session_state.chat})
        if r is not None and r.status_code == 200:
            st.session_state.chat = (safe_json(r) or {}).get("messages", st.session_state.chat)
        else:
            st.session_state.chat = st.session_state.chat + [
                {"role": "user", "content": question},
                {"role": "assistant", "content": "Lamento, ocorreu um erro ao processar a tua pergunta."},
            ]
        st.rerun()


# ---------------- Main App ----------------
def main():
    st.title("💶 Painel Financeiro")
    render_sidebar()

    if not st.session_state.token:
        st.info("🔐 Inicia sessão para ver o teu painel")
        return

    render_stats()
    filters = render_filters()
    render_export(filters)

    tab1, tab2, tab3, tab4 = st.tabs(["💳 Transações", "📊 Categorias", "🎯 Metas", "🤖 Assistente"])
    with tab1:
        render_transactions(filters)
    with tab2:
        render_category_chart(filters)
    with tab3:
        render_goals()
    with tab4:
        render_analysis(filters)
        render_chat(filters)


if __name__ == "__main__":
    main()
