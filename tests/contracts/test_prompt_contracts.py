from stepwise_rag.agent.classifier import _CLASSIFY_PROMPT
from stepwise_rag.agent.stages import _FINAL_PROMPT, _REASONING_PROMPT
from stepwise_rag.config import AgentConfig
from stepwise_rag.llm.backend import session_headers


def test_classifier_prompt_restricts_answer_vocabulary() -> None:
    system, human = _CLASSIFY_PROMPT.format_messages(text="What is MCP?")

    assert system.content == "Respond ONLY with 'question' or 'general'."
    assert human.content == 'Classify: "What is MCP?"'


def test_stage_prompts_embed_query_and_context() -> None:
    reasoning = _REASONING_PROMPT.format_messages(context="CTX", query="Q")
    final = _FINAL_PROMPT.format_messages(context="CTX", reasoning="R", query="Q")

    assert "CTX" in reasoning[1].content and '"Q"' in reasoning[1].content
    assert final[0].content == 'Friendly assistant.\nContext: "CTX".\nReasoning: "R".'
    assert final[1].content == "Q"


def test_generation_budgets_grow_along_the_pipeline() -> None:
    config = AgentConfig()

    assert config.classify.max_tokens < config.reasoning.max_tokens < config.final.max_tokens
    assert config.final.temperature > config.reasoning.temperature
    assert config.retrieval.top_k == 1
    assert config.retrieval.min_similarity is None


def test_session_headers_use_gateway_names() -> None:
    assert session_headers("sid", "/reasoning", "Multi-Step RAG Agent") == {
        "Helicone-Session-Id": "sid",
        "Helicone-Session-Path": "/reasoning",
        "Helicone-Session-Name": "Multi-Step RAG Agent",
    }
