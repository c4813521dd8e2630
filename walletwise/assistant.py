# walletwise/assistant.py
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from openai import OpenAI

from .errors import ValidationError
from .models import DashboardStats, Transaction
from .stats import summarize
from .transactions import current_store, filters_from_args

logger = logging.getLogger("walletwise")

SYSTEM_PROMPT = """És um assistente financeiro português especializado em finanças pessoais.
Deves SEMPRE:
- Usar português de Portugal (não brasileiro) e tratar o utilizador por "tu"
- Preferir os termos usados em Portugal: "despesas", "habitação", "transportes", "valor", "telemóvel"
- Ser direto e prático nas respostas
- Fornecer análises acionáveis
- Manter um tom profissional mas amigável"""

ANALYSIS_PROMPT = """Como analista financeiro, analisa os seguintes dados financeiros e fornece análises, recomendações e alertas.

Transações: {transactions}
Estatísticas: {stats}

Responde APENAS com um objeto JSON com três listas de texto:
{{"insights": [...], "recommendations": [...], "alerts": [...]}}
- insights: 3-5 análises sobre os padrões de despesas e tendências
- recommendations: 3-5 sugestões específicas para melhorar a saúde financeira
- alerts: alertas importantes sobre despesas excessivas ou padrões preocupantes"""

CHAT_CONTEXT = """Contexto atual:
- Saldo total: {total_balance}
- Receitas do mês: {monthly_income}
- Despesas do mês: {monthly_expenses}
- Receitas do mês anterior: {previous_month_income}
- Despesas do mês anterior: {previous_month_expenses}
- Número de transações: {count}

Pergunta do utilizador: {question}"""

GREETING = "Olá! Sou o teu assistente financeiro. Como posso ajudar-te?"
FALLBACK_NOTICE = "Não foi possível gerar análises neste momento. Tenta novamente mais tarde."
FALLBACK_ANSWER = "Lamento, mas não foi possível processar a tua pergunta neste momento."

# keep the prompt inside the model's context window
MAX_CONTEXT_TRANSACTIONS = 200
MAX_HISTORY_TURNS = 20


@dataclass
class Analysis:
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)
    notice: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insights": self.insights,
            "recommendations": self.recommendations,
            "alerts": self.alerts,
            "notice": self.notice,
        }


def fallback_analysis() -> Analysis:
    return Analysis(notice=FALLBACK_NOTICE)


def _string_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_analysis(text: Optional[str]) -> Optional[Analysis]:
    """Parse the model's JSON reply; None when it is not usable"""
    if not text or not text.strip():
        return None
    cleaned = re.sub(r"^```(?:json)?|```$", "", text.strip(), flags=re.MULTILINE).strip()
    match = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
    if not match:
        return None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    analysis = Analysis(
        insights=_string_list(payload.get("insights")),
        recommendations=_string_list(payload.get("recommendations")),
        alerts=_string_list(payload.get("alerts")),
    )
    if not (analysis.insights or analysis.recommendations or analysis.alerts):
        return None
    return analysis


class AssistantBridge:
    """Hosted language model behind two operations that never raise"""

    def __init__(self, client=None, model="llama-3.3-70b-versatile", temperature=0.7, max_tokens=1024):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, config) -> "AssistantBridge":
        client = config.get("ASSISTANT_CLIENT")
        if client is None and config.get("ASSISTANT_API_KEY"):
            client = OpenAI(api_key=config["ASSISTANT_API_KEY"], base_url=config.get("ASSISTANT_BASE_URL"))
        if client is None:
            logger.warning("No assistant API key configured; assistant answers will use fallbacks")
        return cls(
            client=client,
            model=config.get("ASSISTANT_MODEL", "llama-3.3-70b-versatile"),
            temperature=config.get("ASSISTANT_TEMPERATURE", 0.7),
            max_tokens=config.get("ASSISTANT_MAX_TOKENS", 1024),
        )

    def _complete(self, messages: List[Dict[str, str]]) -> Optional[str]:
        if self.client is None:
            return None
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            if not response.choices:
                return None
            content = response.choices[0].message.content
            return content if isinstance(content, str) else None
        except Exception as e:
            logger.error(f"Assistant call failed: {e}")
            return None

    @staticmethod
    def _transactions_json(transactions: List[Transaction]) -> str:
        recent = sorted(transactions, key=lambda t: t.date.isoformat() if t.date else "", reverse=True)
        rows = [
            {k: v for k, v in t.to_dict().items() if k in ("date", "description", "amount", "type", "category")}
            for t in recent[:MAX_CONTEXT_TRANSACTIONS]
        ]
        return json.dumps(rows, ensure_ascii=False)

    def structured_analysis(self, transactions: List[Transaction], stats: DashboardStats) -> Analysis:
        prompt = ANALYSIS_PROMPT.format(
            transactions=self._transactions_json(transactions),
            stats=json.dumps(stats.to_dict()),
        )
        reply = self._complete([
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ])
        analysis = parse_analysis(reply)
        if analysis is None:
            logger.warning("Assistant analysis reply was empty or malformed")
            return fallback_analysis()
        return analysis

    def conversational_answer(self, transactions: List[Transaction], stats: DashboardStats,
                              question: str, history: Optional[List[Dict[str, str]]] = None) -> str:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in (history or [])[-MAX_HISTORY_TURNS:]:
            if turn.get("role") in ("user", "assistant") and turn.get("content"):
                messages.append({"role": turn["role"], "content": str(turn["content"])})
        values = stats.to_dict()
        messages.append({
            "role": "user",
            "content": CHAT_CONTEXT.format(count=len(transactions), question=question, **values),
        })
        reply = self._complete(messages)
        if not reply or not reply.strip():
            return FALLBACK_ANSWER
        return reply.strip()


# ---------------- Routes ----------------
assistant_bp = Blueprint("assistant", __name__, url_prefix="/assistant")


def get_bridge() -> AssistantBridge:
    return current_app.extensions["walletwise.assistant"]


def _snapshot():
    """Full history for the stats, the requested period for the prompt"""
    filters = filters_from_args(request.args)
    history = current_store().list_all()
    in_range = [t for t in history if t.date and filters.start <= t.date <= filters.end]
    return in_range, summarize(history)


@assistant_bp.route("/analysis", methods=["POST"])
@jwt_required()
def analysis():
    transactions, stats = _snapshot()
    result = get_bridge().structured_analysis(transactions, stats)
    logger.info(f"🤖 Analysis generated for {get_jwt_identity()} over {len(transactions)} transactions")
    return jsonify({"analysis": result.to_dict()})


@assistant_bp.route("/chat", methods=["GET"])
@jwt_required()
def chat_start():
    return jsonify({"messages": [{"role": "assistant", "content": GREETING}]})


@assistant_bp.route("/chat", methods=["POST"])
@jwt_required()
def chat():
    data = request.get_json(silent=True) or {}
    question = (data.get("question") or "").strip()
    if not question:
        raise ValidationError("Question is required")
    history = data.get("history") or []
    if not isinstance(history, list):
        raise ValidationError("History must be a list of messages")
    history = [turn for turn in history if isinstance(turn, dict)]

    transactions, stats = _snapshot()
    answer = get_bridge().conversational_answer(transactions, stats, question, history)
    messages = history + [
        {"role": "user", "content": question},
        {"role": "assistant", "content": answer},
    ]
    return jsonify({"answer": answer, "messages": messages})
