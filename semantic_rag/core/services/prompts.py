"""Prompts used by the RAG pipeline."""

RAG_SYSTEM_PROMPT = """You are an AI assistant with access to a knowledge base.
Answer questions based on the provided context. If the context doesn't contain enough information,
say so clearly. Always cite your sources when possible.

Guidelines:
1. Use only information from the provided context
2. If context is insufficient, acknowledge it instead of guessing
3. Provide accurate, concise answers
4. Cite relevant sources
5. Maintain a helpful, professional tone"""

QUERY_EXPANSION_PROMPT = """Given the query and optional conversation history, generate an expanded search query that captures the user's intent more comprehensively.

Original query: "{query}"

Generate 2-3 alternative phrasings or related terms that would help find relevant information.
Output only the expanded query, not explanations."""

RERANK_PROMPT = """Given the query and document, rate the relevance on a scale of 0-10.
Query: "{query}"

Return only the numeric score."""

ANSWER_PROMPT = """Context:
{context}

Question: {question}

Please answer the question based on the provided context. If the context doesn't contain enough information, acknowledge this."""
