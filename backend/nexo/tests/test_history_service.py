"""Tests for chat history persistence and the analysis orchestrator.

WHAT: Append/list/clear semantics and the question -> answer -> history flow
WHY: Readers must never see a question without its answer, and a failed
     analysis must leave the history untouched

REFERENCES:
  - nexo/services/history_service.py
  - nexo/services/analysis_service.py
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from nexo import models
from nexo.agent.exceptions import HistoryPersistenceError, ModelInvocationError
from nexo.agent.llm import ModelTurn, ToolCall
from nexo.deps import Settings
from nexo.services.analysis_service import AnalysisService
from nexo.services.history_service import ChatHistoryStore, ChatTurn


class TestChatHistoryStore:

    def test_append_pair_and_list_in_order(self, test_db_session):
        store = ChatHistoryStore(test_db_session)

        store.append_turns([
            ChatTurn(role="user", content="Quem está inativo?"),
            ChatTurn(role="agent", content="Usinagem Beta.", data={"inactive_clients": [{"id": 2}]}),
        ])
        turns = store.list_turns()

        assert [(t.role, t.content) for t in turns] == [
            ("user", "Quem está inativo?"),
            ("agent", "Usinagem Beta."),
        ]
        assert turns[0].data is None
        assert turns[1].data == {"inactive_clients": [{"id": 2}]}
        assert all(t.id is not None and t.timestamp is not None for t in turns)

    def test_limit_returns_most_recent_oldest_first(self, test_db_session):
        store = ChatHistoryStore(test_db_session)
        for i in range(5):
            store.append_turns([ChatTurn(role="user", content=f"pergunta {i}")])

        turns = store.list_turns(limit=2)

        assert [t.content for t in turns] == ["pergunta 3", "pergunta 4"]

    def test_clear_then_list_is_empty(self, test_db_session):
        store = ChatHistoryStore(test_db_session)
        store.append_turns([ChatTurn(role="user", content="a"), ChatTurn(role="agent", content="b")])

        deleted = store.clear()

        assert deleted == 2
        assert store.list_turns() == []

    def test_clear_append_list_has_one(self, test_db_session):
        store = ChatHistoryStore(test_db_session)
        store.append_turns([ChatTurn(role="user", content="antiga")])
        store.clear()

        store.append_turns([ChatTurn(role="user", content="nova")])

        assert [t.content for t in store.list_turns()] == ["nova"]

    def test_clear_empty_history(self, test_db_session):
        assert ChatHistoryStore(test_db_session).clear() == 0

    def test_invalid_role_rejected(self, test_db_session):
        with pytest.raises(ValueError):
            ChatHistoryStore(test_db_session).append_turns([ChatTurn(role="assistant", content="x")])

    def test_failed_commit_writes_nothing(self, test_db_session):
        store = ChatHistoryStore(test_db_session)

        with patch.object(
            test_db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        ):
            with pytest.raises(HistoryPersistenceError):
                store.append_turns([ChatTurn(role="user", content="a"), ChatTurn(role="agent", content="b")])

        assert store.list_turns() == []

    def test_concurrent_reader_never_sees_half_a_pair(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'history.db'}")
        models.Base.metadata.create_all(bind=engine)
        Session = sessionmaker(bind=engine)
        writer = Session()
        store = ChatHistoryStore(writer)
        real_commit = writer.commit
        observed = []

        def commit_after_concurrent_read():
            writer.flush()
            with Session() as reader:
                observed.append(len(ChatHistoryStore(reader).list_turns()))
            real_commit()

        try:
            with patch.object(writer, "commit", side_effect=commit_after_concurrent_read):
                store.append_turns([ChatTurn(role="user", content="a"), ChatTurn(role="agent", content="b")])

            with Session() as reader:
                observed.append(len(ChatHistoryStore(reader).list_turns()))
        finally:
            writer.close()
            engine.dispose()

        assert observed == [0, 2]

    def test_unreadable_data_is_dropped(self, test_db_session):
        test_db_session.add(models.ChatHistory(role="agent", content="resposta", data="{not json"))
        test_db_session.commit()

        turn = ChatHistoryStore(test_db_session).list_turns()[0]

        assert turn.content == "resposta"
        assert turn.data is None

    def test_to_dict_omits_missing_data(self, test_db_session):
        store = ChatHistoryStore(test_db_session)
        store.append_turns([ChatTurn(role="user", content="a")])

        payload = store.list_turns()[0].to_dict()

        assert set(payload) == {"id", "role", "content", "timestamp"}
        assert isinstance(payload["id"], str)


class TestAnalysisService:

    def test_persists_question_and_answer(self, seeded_db, make_model):
        model = make_model([
            ModelTurn(tool_calls=[ToolCall(id="c1", name="period_sales_analysis", arguments='{"dias_atras": 30}')]),
            ModelTurn(content="Faturamento de R$ 8.000 nos últimos 30 dias."),
        ])
        service = AnalysisService(seeded_db, model=model, settings=Settings())

        result = asyncio.run(service.analyze("Como foram as vendas no último mês?"))

        assert result["analysis"] == "Faturamento de R$ 8.000 nos últimos 30 dias."
        assert result["data"]["period_sales_analysis"]["faturamento_total"] == 8000.0
        assert result["iterations"] == 2
        assert result["timestamp"]

        turns = ChatHistoryStore(seeded_db).list_turns()
        assert [t.role for t in turns] == ["user", "agent"]
        assert turns[0].content == "Como foram as vendas no último mês?"
        assert turns[1].data["period_sales_analysis"]["faturamento_anterior"] == 2000.0

    def test_answer_without_tools_stores_no_data(self, seeded_db, make_model):
        service = AnalysisService(seeded_db, model=make_model([ModelTurn(content="Olá!")]), settings=Settings())

        result = asyncio.run(service.analyze("Oi"))

        assert result["data"] == {}
        assert ChatHistoryStore(seeded_db).list_turns()[1].data is None

    def test_model_failure_persists_nothing(self, seeded_db, make_model):
        model = make_model([], error=ModelInvocationError("rate limited"))
        service = AnalysisService(seeded_db, model=model, settings=Settings())

        with pytest.raises(ModelInvocationError):
            asyncio.run(service.analyze("Oi"))

        assert ChatHistoryStore(seeded_db).list_turns() == []

    def test_configured_prompt_and_iteration_cap(self, seeded_db, make_model):
        model = make_model([ModelTurn(tool_calls=[ToolCall(id="c1", name="inactive_clients")])])
        settings = Settings(AGENT_SYSTEM_PROMPT="Seja breve.", AGENT_MAX_ITERATIONS=2)
        service = AnalysisService(seeded_db, model=model, settings=settings)

        asyncio.run(service.analyze("Inativos?"))

        assert len(model.calls) == 2
        assert model.calls[0][0] == {"role": "system", "content": "Seja breve."}

    def test_failed_tool_query_does_not_block_later_queries(self, seeded_db, make_model):
        model = make_model([
            ModelTurn(tool_calls=[
                ToolCall(id="c1", name="client_potential", arguments='{"cliente_id": 3000000000}'),
                ToolCall(id="c2", name="period_sales_analysis", arguments='{"dias_atras": 30}'),
            ]),
            ModelTurn(content="Não encontrei o cliente, mas o faturamento foi de R$ 8.000."),
        ])
        service = AnalysisService(seeded_db, model=model, settings=Settings())
        real_query = seeded_db.query
        failures = []

        def fail_first_query(*entities, **kwargs):
            if not failures:
                failures.append(entities)
                raise OperationalError("SELECT", {}, Exception("integer out of range"))
            return real_query(*entities, **kwargs)

        with patch.object(seeded_db, "rollback", wraps=seeded_db.rollback) as rollback, \
                patch.object(seeded_db, "query", side_effect=fail_first_query):
            result = asyncio.run(service.analyze("Qual o potencial do cliente 3000000000?"))

        rollback.assert_called_once()
        assert "integer out of range" in result["data"]["client_potential"]["error"]
        assert result["data"]["period_sales_analysis"]["faturamento_total"] == 8000.0
        assert [t.role for t in ChatHistoryStore(seeded_db).list_turns()] == ["user", "agent"]
