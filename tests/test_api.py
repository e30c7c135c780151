import json

import httpx

from sourcelens.config import settings
from sourcelens.errors import ProviderError
from sourcelens.orchestrator.wikipedia import WikipediaClient

ANALYSIS_REPLY = """SUMMARY: A letter protesting the Fugitive Slave Act.
PRELIMINARY ANALYSIS: Written for a Northern audience.
FOLLOW-UP QUESTIONS:
1. Who published it?
2. How was it received?
3. Did the author write again?"""

USER = {"X-User-Id": "user-1"}


def connection_nodes(count):
    return [
        {"name": f"Entity {i}", "type": "event", "relationship": "direct", "distance": i % 7}
        for i in range(count)
    ]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_wrong_method_is_405(client):
    assert client.get("/api/initial-analysis").status_code == 405


# --- Analysis ---


def test_initial_analysis(client, backends, metadata):
    backends["google"].reply = ANALYSIS_REPLY
    response = client.post("/api/initial-analysis", json={"source": "Dear Sir...", "metadata": metadata})

    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["summary"] == "A letter protesting the Fugitive Slave Act."
    assert body["analysis"]["followupQuestions"] == [
        "Who published it?",
        "How was it received?",
        "Did the author write again?",
    ]
    assert body["rawResponse"] == ANALYSIS_REPLY
    assert "Dear Sir..." in body["rawPrompt"]


def test_initial_analysis_missing_fields_makes_no_provider_call(client, backends):
    response = client.post("/api/initial-analysis", json={"source": "Dear Sir..."})
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"
    assert all(not backend.calls for backend in backends.values())


def test_malformed_body_is_400(client):
    response = client.post("/api/initial-analysis", json={"source": "x", "metadata": "not an object"})
    assert response.status_code == 400


def test_detailed_analysis_legacy_model(client, backends, metadata):
    backends["openai"].reply = "CONTEXT: ..."
    response = client.post(
        "/api/detailed-analysis", json={"source": "Dear Sir...", "metadata": metadata, "model": "gpt"}
    )
    assert response.json()["analysis"] == "CONTEXT: ..."
    config = backends["openai"].last_config
    assert (config.model, config.temperature, config.max_tokens) == ("gpt-4o-mini", 0.5, 500)


def test_counter_narrative_defaults_to_claude(client, backends, metadata):
    backends["anthropic"].reply = "Read against the grain..."
    response = client.post("/api/counter-narrative", json={"source": "Dear Sir...", "metadata": metadata})
    assert response.json()["narrative"] == "Read against the grain..."
    assert backends["anthropic"].last_config.max_tokens == 1500


def test_provider_failure_is_500_with_message(client, backends, metadata):
    backends["google"].error = ProviderError("Gemini request failed", "500: backend exploded")
    response = client.post("/api/initial-analysis", json={"source": "Dear Sir...", "metadata": metadata})
    assert response.status_code == 500
    assert response.json() == {
        "message": "Gemini request failed",
        "kind": "provider",
        "error": "500: backend exploded",
    }


def test_suggest_extraction(client, backends):
    backends["google"].reply = '```json\n{"listType": "People named", "fields": ["Name", "Role"], "format": "list"}\n```'
    response = client.post("/api/suggest-extraction", json={"content": "z" * 9000})

    body = response.json()
    assert body["listType"] == "People named"
    assert body["format"] == "list"
    assert body["modelUsed"] == "Gemini 2.0 Flash"
    assert ("z" * 8000 + "...") in body["prompt"]
    assert "z" * 8001 not in body["prompt"]


def test_extract_info_table(client, backends):
    backends["google"].reply = '[{"Name": "Jane Doe", "Role": "Author"}]'
    response = client.post(
        "/api/extract-info",
        json={"content": "Jane Doe wrote the letter.", "query": "people", "format": "table"},
    )
    body = response.json()
    assert body["extractedInfo"] == [{"Name": "Jane Doe", "Role": "Author"}]
    assert body["contentStrategy"] == "full"
    assert body["chunkingApplied"] is False
    assert backends["google"].last_config.temperature == 0.2


# --- Connections ---


def test_connections(client, backends, metadata):
    backends["google"].reply = json.dumps(connection_nodes(9))
    response = client.post("/api/connections", json={"source": "Dear Sir...", "metadata": metadata})

    assert response.status_code == 200
    body = response.json()
    assert body["sourceNode"]["id"] == "source"
    assert 8 <= len(body["connections"]) <= 10
    assert all(1 <= c["distance"] <= 5 for c in body["connections"])
    assert all(c["type"] == "event" for c in body["connections"])
    assert len(body["links"]) == len(body["connections"])


def test_connections_errors(client, backends, metadata):
    backends["google"].reply = json.dumps(connection_nodes(3))
    response = client.post("/api/connections", json={"source": "Dear Sir...", "metadata": metadata})
    assert response.status_code == 500
    assert response.json()["kind"] == "parsing"

    response = client.post(
        "/api/connections",
        json={"source": "Dear Sir...", "metadata": metadata, "modelId": "claude-haiku"},
    )
    assert response.status_code == 400

    backends["google"].error = ProviderError("Content generation failed. Reason: SAFETY", "SAFETY")
    response = client.post("/api/connections", json={"source": "Dear Sir...", "metadata": metadata})
    assert response.status_code == 500
    assert "SAFETY" in response.json()["message"]


def test_connections_missing_google_key(client, metadata, monkeypatch):
    monkeypatch.setattr(settings, "google_api_key", "")
    response = client.post("/api/connections", json={"source": "Dear Sir...", "metadata": metadata})
    assert response.status_code == 500
    assert response.json()["kind"] == "configuration"


def test_expand_connections(client, backends, metadata):
    backends["google"].reply = json.dumps(connection_nodes(8))
    response = client.post(
        "/api/connections/expand",
        json={
            "sourceNode": {"id": "n1", "name": "Boston", "x": 0, "y": 0},
            "originalSource": {"content": "Dear Sir...", "metadata": metadata},
            "graphData": {"connections": [{"name": "Faneuil Hall"}]},
        },
    )
    body = response.json()
    assert "sourceNode" not in body
    assert len(body["connections"]) == 8
    assert all("x" in c and "y" in c for c in body["connections"])
    assert {link["source"] for link in body["links"]} == {"n1"}


def test_expand_connections_rejects_non_object_metadata(client, backends):
    response = client.post(
        "/api/connections/expand",
        json={"sourceNode": {"id": "n1", "name": "X"}, "originalSource": {"metadata": "oops"}},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"
    assert backends["google"].calls == []


# --- Summaries ---


SUMMARY_REPLY = json.dumps(
    {
        "overallSummary": "A single argument.",
        "sections": [{"id": "section-1", "title": "Opening", "summary": "Sets up.", "fullText": "..."}],
    }
)


def test_summarize_text_truncates_and_reports_original_length(client, backends):
    backends["google"].reply = SUMMARY_REPLY
    text = "w" * 300_010
    response = client.post("/api/summarize-text", json={"text": text})

    body = response.json()
    assert body["originalTextLength"] == 300_010
    assert body["processedTextLength"] < 300_100
    assert body["totalSections"] == 1
    assert "[Note: Document was truncated due to length.]" in backends["google"].last_prompt
    assert "w" * 300_001 not in backends["google"].last_prompt


def test_summarize_uses_google_even_for_other_models(client, backends):
    backends["google"].reply = SUMMARY_REPLY
    response = client.post("/api/summarize-text", json={"text": "Short text.", "modelId": "claude-sonnet"})
    assert response.status_code == 200
    assert backends["anthropic"].calls == []
    assert backends["google"].last_config.model == "gemini-2.0-flash-lite"


def test_summarize_draft(client, backends):
    backends["google"].reply = SUMMARY_REPLY
    response = client.post(
        "/api/summarize-draft", json={"draft": {"title": "Essay", "content": "one two  three"}}
    )
    body = response.json()
    assert body["wordCount"] == 3
    assert body["sections"][0]["fullText"] == "..."

    assert client.post("/api/summarize-draft", json={"draft": {}}).status_code == 400


# --- Draft assist ---


def save_draft(client):
    response = client.post(
        "/api/user-data?type=drafts",
        json={"title": "My Essay", "content": "The letter shows rising tension."},
        headers=USER,
    )
    return response.json()["data"]["id"]


def test_draft_assist_requires_user(client):
    response = client.post(
        "/api/draft-assist", json={"action": "critique", "highlightedText": "x", "draftId": "d"}
    )
    assert response.status_code == 401


def test_draft_assist_critique(client, backends):
    draft_id = save_draft(client)
    backends["google"].reply = "0. Decent but vague.\n1. Be specific.\n2. Cite the source.\n3. Shorten it."
    response = client.post(
        "/api/draft-assist",
        json={"action": "critique", "highlightedText": "rising tension", "draftId": draft_id},
        headers=USER,
    )

    assert response.status_code == 200
    assert response.json() == {
        "suggestions": ["Be specific.", "Cite the source.", "Shorten it."],
        "action": "critique",
        "remark": "Decent but vague.",
    }
    assert "My Essay" in backends["google"].last_prompt


def test_draft_assist_validation_and_lookup(client):
    draft_id = save_draft(client)
    body = {"action": "rewrite", "highlightedText": "x", "draftId": draft_id}
    assert client.post("/api/draft-assist", json=body, headers=USER).status_code == 400

    body = {"action": "relate", "highlightedText": "x", "draftId": draft_id}
    assert client.post("/api/draft-assist", json=body, headers=USER).status_code == 400

    body = {"action": "segue", "highlightedText": "x", "draftId": "no-such-draft"}
    response = client.post("/api/draft-assist", json=body, headers=USER)
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"

    # another user cannot reach this draft
    body = {"action": "segue", "highlightedText": "x", "draftId": draft_id}
    assert client.post("/api/draft-assist", json=body, headers={"X-User-Id": "user-2"}).status_code == 404


# --- Chat ---


def test_chat_keeps_history(client, backends, metadata):
    backends["openai"].reply = "Brief answer."
    payload = {"message": "Who wrote this?", "source": "Dear Sir...", "metadata": metadata}
    first = client.post("/api/chat", json=payload).json()
    assert first["conversationId"].startswith("session_")
    assert first["historyLength"] == 2
    assert "Jane Doe" in first["rawPrompt"]

    second = client.post("/api/chat", json={**payload, "conversationId": first["conversationId"]}).json()
    assert second["historyLength"] == 4
    messages, config = backends["openai"].calls[-1]
    assert len(messages) == 3
    assert config.system == first["rawPrompt"]
    assert config.max_tokens == 800


def test_chat_seeds_history_and_uses_claude(client, backends, metadata):
    backends["anthropic"].reply = "Claude answer."
    response = client.post(
        "/api/chat",
        json={
            "message": "And then?",
            "source": "Dear Sir...",
            "metadata": metadata,
            "model": "claude",
            "history": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello"},
            ],
        },
    )
    assert response.json()["historyLength"] == 4
    assert backends["anthropic"].last_config.model == "claude-3-5-haiku-latest"


def test_chat_missing_fields(client):
    assert client.post("/api/chat", json={"message": "hi"}).status_code == 400


# --- Reference ---


def test_wiki_overview_falls_back_to_claude(client, backends):
    backends["google"].error = ProviderError("Gemini request failed", "503: unavailable")
    backends["anthropic"].reply = "  An abolitionist writer of the 1850s.  "
    response = client.post(
        "/api/generate-wiki-overview",
        json={"title": "Jane Doe", "type": "author", "sourceContext": {"title": "Letter"}},
    )
    assert response.json() == {
        "summary": "An abolitionist writer of the 1850s.",
        "type": "author",
        "title": "Jane Doe",
        "model": "claude-sonnet",
    }


def test_wiki_overview_both_providers_fail(client, backends):
    backends["google"].error = ProviderError("Gemini request failed")
    backends["anthropic"].error = ProviderError("Claude request failed")
    response = client.post("/api/generate-wiki-overview", json={"title": "Jane Doe"})

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Both Gemini and Claude LLMs failed to generate a summary"
    assert set(body["error"]) == {"gemini-flash-lite", "claude-sonnet"}


def test_wiki_overview_requires_title(client):
    assert client.post("/api/generate-wiki-overview", json={}).status_code == 400


def test_wikipedia_route(client):
    def handler(request: httpx.Request) -> httpx.Response:
        if "Boston" in request.url.path:
            return httpx.Response(200, json={"extract": "A city."})
        raise httpx.ConnectError("down", request=request)

    client.app.state.wikipedia = WikipediaClient(transport=httpx.MockTransport(handler))

    response = client.get("/api/wikipedia", params={"title": "Boston"})
    assert response.json() == {"summary": "A city.", "fullUrl": "https://en.wikipedia.org/wiki/Boston"}

    response = client.get("/api/wikipedia", params={"title": "Salem"})
    assert response.status_code == 500
    assert response.json()["summary"] is None
    assert response.json()["fullUrl"] == "https://en.wikipedia.org/wiki/Salem"

    assert client.get("/api/wikipedia").status_code == 400


# --- Library ---


def test_user_data_requires_session(client):
    assert client.get("/api/user-data?type=sources").status_code == 401


def test_user_data_crud(client):
    assert client.get("/api/user-data?type=notes", headers=USER).status_code == 400

    created = client.post(
        "/api/user-data?type=sources", json={"content": "Dear Sir...", "metadata": {}}, headers=USER
    ).json()["data"]
    item_id = created["id"]

    items = client.get("/api/user-data?type=sources", headers=USER).json()["data"]
    assert [i["id"] for i in items] == [item_id]

    response = client.patch(
        f"/api/user-data?type=sources&id={item_id}", json={"content": "Edited"}, headers=USER
    )
    assert response.json()["data"]["content"] == "Edited"
    assert "lastEdited" in response.json()["data"]

    assert client.patch("/api/user-data?type=sources", json={}, headers=USER).status_code == 400
    assert client.delete(f"/api/user-data?type=sources&id={item_id}", headers=USER).json() == {"success": True}
    assert client.get("/api/user-data?type=sources", headers=USER).json()["data"] == []


def test_library_logged_out_uses_local_storage(client, tmp_path):
    response = client.post("/api/library/analyses", json={"summary": "An analysis"})
    item_id = response.json()["id"]

    listing = client.get("/api/library/analyses").json()
    assert listing["persistent"] is False
    assert listing["items"][0]["id"] == item_id
    assert isinstance(listing["items"][0]["dateAdded"], int)
    assert "sourceLens_savedAnalyses" in json.loads((tmp_path / "local.json").read_text())

    assert client.patch(f"/api/library/analyses/{item_id}", json={"summary": "Revised"}).json() == {"success": True}
    assert client.get("/api/library/analyses").json()["items"][0]["summary"] == "Revised"
    client.delete(f"/api/library/analyses/{item_id}")
    assert client.get("/api/library/analyses").json()["items"] == []


def test_library_logged_in_uses_database(client):
    item_id = client.post("/api/library/references", json={"citation": "Doe 1851"}, headers=USER).json()["id"]
    listing = client.get("/api/library/references", headers=USER).json()
    assert listing["persistent"] is True
    assert listing["items"][0]["id"] == item_id
    assert client.get("/api/library/references").json()["items"] == []

    response = client.patch("/api/library/references/missing", json={"citation": "x"}, headers=USER)
    assert response.status_code == 404


def test_library_unknown_kind(client):
    response = client.get("/api/library/bogus")
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown storage key: bogus"


# --- Source tools ---


def test_expand_analysis(client, backends):
    backends["google"].reply = "The Act turned bystanders into participants."
    response = client.post(
        "/api/expand-analysis",
        json={
            "sectionKey": "context",
            "sectionTitle": "Context",
            "originalContent": "Passed in 1850.",
            "userInput": "Why did it matter?",
        },
    )
    assert response.json() == {"expandedText": "The Act turned bystanders into participants."}
    assert backends["google"].last_config.max_tokens == 250
    assert "Why did it matter?" in backends["google"].last_prompt

    backends["google"].reply = "  "
    response = client.post(
        "/api/expand-analysis",
        json={"sectionKey": "c", "sectionTitle": "C", "originalContent": "x", "userInput": "y"},
    )
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to generate expansion text."

    response = client.post("/api/expand-analysis", json={"sectionKey": "c"})
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields for expansion"


def test_extract_metadata(client, backends):
    backends["openai"].reply = '{"author": "Jane Doe", "date": "1851-03-02", "title": ""}'
    response = client.post("/api/extract-metadata", json={"text": "Boston, March 2, 1851. Dear Sir,"})
    assert response.json()["author"] == "Jane Doe"
    config = backends["openai"].last_config
    assert config.json_mode is True
    assert config.system.startswith("Extract document metadata")

    response = client.post("/api/extract-metadata", json={"text": ""})
    assert response.status_code == 400
    assert response.json()["message"] == "Text is required"


HIGHLIGHT_CONTENT = "We hold these truths. All men are created equal."


def test_highlight_segments_on_gemini(client, backends):
    backends["google"].reply = json.dumps(
        {"segments": [{"text": "All men are created equal.", "score": 0.8, "explanation": "Core claim"}]}
    )
    response = client.post(
        "/api/highlight-segments", json={"content": HIGHLIGHT_CONTENT, "query": "equality"}
    )
    body = response.json()
    assert body["totalSegments"] == 1
    assert body["segments"][0]["id"] == 0
    assert body["query"] == "equality"
    assert backends["openai"].calls == []


def test_highlight_segments_falls_back_on_unparseable_reply(client, backends):
    backends["google"].reply = "I found several passages about equality."
    backends["openai"].reply = json.dumps({"segments": [{"text": "We hold these truths.", "score": 0.5}]})
    response = client.post(
        "/api/highlight-segments",
        json={"content": HIGHLIGHT_CONTENT, "query": "truth", "numSegments": 2},
    )
    assert response.json()["segments"][0]["text"] == "We hold these truths."
    assert backends["openai"].last_config.json_mode is True

    backends["openai"].reply = "still not JSON"
    response = client.post("/api/highlight-segments", json={"content": HIGHLIGHT_CONTENT, "query": "truth"})
    assert response.status_code == 500
    assert response.json()["message"] == "Error processing highlight request"


def test_highlight_segments_validation(client, backends):
    assert client.post("/api/highlight-segments", json={"content": "x"}).status_code == 400
    response = client.post(
        "/api/highlight-segments", json={"content": "x", "query": "y", "numSegments": 0}
    )
    assert response.status_code == 400
    assert backends["google"].calls == []


def test_suggested_references(client, backends, metadata):
    backends["google"].reply = json.dumps(
        {"references": [{"citation": "Foner, Eric, Gateway to Freedom", "type": "book", "importance": 5}]}
    )
    response = client.post("/api/suggested-references", json={"source": "Dear Sir,", "metadata": metadata})
    body = response.json()
    assert body["modelUsed"] == "Gemini 2.0 Flash"
    assert body["references"][0]["url"].endswith("q=Foner%20Eric")

    again = client.post("/api/suggested-references", json={"source": "Dear Sir,", "metadata": metadata})
    assert again.json()["references"] == body["references"]
    assert len(backends["google"].calls) == 1


def test_suggested_references_answer_200_when_models_fail(client, backends, metadata):
    backends["google"].error = ProviderError("Gemini request failed")
    backends["openai"].error = ProviderError("OpenAI request failed")
    response = client.post("/api/suggested-references", json={"source": "Dear Sir,", "metadata": metadata})
    assert response.status_code == 200
    assert response.json()["modelUsed"] == "Fallback Generator"

    assert client.post("/api/suggested-references", json={"source": "Dear Sir,"}).status_code == 400


def test_translate(client, backends, metadata):
    backends["google"].reply = "Querido señor,"
    response = client.post(
        "/api/translate",
        json={"source": "Dear Sir,", "metadata": metadata, "targetLanguage": "es", "literalToPoetic": 0.9},
    )
    body = response.json()
    assert body["translation"] == "Querido señor,"
    assert body["modelUsed"] == "Gemini 2.0 Pro Experimental"
    assert body["targetLanguage"] == "es"
    assert "into Spanish" in body["rawPrompt"]
    assert backends["google"].last_config.max_tokens == 8192


def test_translate_with_claude_uses_translator_system_prompt(client, backends, metadata):
    backends["anthropic"].reply = "Dear Sir,"
    response = client.post(
        "/api/translate", json={"source": "Cher Monsieur,", "metadata": metadata, "modelId": "claude-sonnet"}
    )
    assert response.json()["modelUsed"] == "Claude 3.7 Sonnet"
    assert backends["anthropic"].last_config.system.startswith("You are a world-class translator")

    assert client.post("/api/translate", json={"metadata": metadata}).status_code == 400


ROLEPLAY_SKETCH = """A restless pamphleteer.
BIRTH_YEAR: 1810
DEATH_YEAR: 1880
BIRTHPLACE: Boston, United States
EMOJI: 🖋️"""


def test_roleplay_initialize_then_reply(client, backends, metadata):
    backends["openai"].reply = ROLEPLAY_SKETCH
    response = client.post(
        "/api/roleplay", json={"source": "Dear Sir,", "metadata": metadata, "initialize": True}
    )
    body = response.json()
    assert body["response"] == "Well?"
    assert body["authorEmoji"] == "🖋️"
    assert body["birthYear"] == "1810"
    assert body["hasPortrait"] is False
    assert backends["anthropic"].calls == []

    backends["anthropic"].reply = "Because the law is wicked."
    response = client.post(
        "/api/roleplay",
        json={
            "source": "Dear Sir,",
            "metadata": metadata,
            "message": "Why write this letter?",
            "conversation": [{"role": "user", "content": "Good evening."}],
        },
    )
    body = response.json()
    assert body["response"] == "Because the law is wicked."
    assert body["characterSketch"] == ROLEPLAY_SKETCH
    assert "Questioner: Good evening." in body["rawPrompt"]
    assert len(backends["openai"].calls) == 1


def test_roleplay_requires_source_and_metadata(client):
    response = client.post("/api/roleplay", json={"source": "Dear Sir,"})
    assert response.status_code == 400


def test_next_steps(client, backends):
    backends["google"].reply = "  Compare the two letters from March.  "
    response = client.post(
        "/api/next-steps",
        json={"stats": {"sourcesCount": 2}, "recentSources": ["Letter"], "recentNotes": []},
    )
    assert response.json() == {"suggestion": "Compare the two letters from March."}
    assert "NO RECENT NOTES" in backends["google"].last_prompt

    assert client.post("/api/next-steps", json={}).status_code == 400

    backends["google"].error = ProviderError("Gemini request failed")
    response = client.post("/api/next-steps", json={"stats": {"sourcesCount": 2}})
    assert response.status_code == 500
    assert response.json()["message"] == "Error generating suggestions"
    assert response.json()["suggestion"].startswith("Consider continuing")
