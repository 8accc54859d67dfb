"""Cost estimation for a planned summarization run."""

import tiktoken

from .summarize.client import CHUNK_MAX_TOKENS, MERGE_MAX_TOKENS
from .summarize.prompts import CHUNK_PROMPT, CHUNK_SYSTEM, MERGE_PROMPT, MERGE_SYSTEM
from .summarize.schema import Chunk

# Approximate costs per 1M tokens (input/output)
# These are estimates - actual costs may vary
MODEL_COSTS = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "claude-3-5-haiku-latest": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-0": {"input": 3.00, "output": 15.00},
}
DEFAULT_COST_MODEL = "gpt-4o"

# Thresholds for warnings
WARN_TRANSCRIPT_TOKENS = 50_000
WARN_ESTIMATED_COST = 0.50


def _encoding(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str, model: str = DEFAULT_COST_MODEL) -> int:
    """Count tokens in text using tiktoken."""
    return len(_encoding(model).encode(text))


def estimate_summarization_cost(chunks: list[Chunk], model: str = DEFAULT_COST_MODEL) -> dict:
    """
    Estimate the worst-case cost of summarizing ``chunks``.

    Output tokens assume every call uses its full max_tokens ceiling.

    Returns dict with:
        - num_chunks: number of chunk calls
        - transcript_tokens: tokens in the chunk texts
        - estimated_input_tokens: total input tokens (chunks + prompts + merge)
        - estimated_output_tokens: upper bound on output tokens
        - estimated_cost: cost in USD
        - should_warn: whether to show warning
    """
    costs = MODEL_COSTS.get(model, MODEL_COSTS[DEFAULT_COST_MODEL])
    enc = _encoding(model)

    prompt_overhead = len(enc.encode(CHUNK_SYSTEM + CHUNK_PROMPT))
    transcript_tokens = sum(len(enc.encode(chunk.text)) for chunk in chunks)

    # Map: each chunk plus its prompt -> up to CHUNK_MAX_TOKENS
    map_input = transcript_tokens + prompt_overhead * len(chunks)
    map_output = CHUNK_MAX_TOKENS * len(chunks)

    # Merge: all chunk summaries plus the merge prompt -> up to MERGE_MAX_TOKENS
    merge_input = map_output + len(enc.encode(MERGE_SYSTEM + MERGE_PROMPT))
    merge_output = MERGE_MAX_TOKENS

    total_input = map_input + merge_input
    total_output = map_output + merge_output
    total_cost = (total_input / 1_000_000) * costs["input"] + (total_output / 1_000_000) * costs["output"]

    return {
        "num_chunks": len(chunks),
        "transcript_tokens": transcript_tokens,
        "estimated_input_tokens": total_input,
        "estimated_output_tokens": total_output,
        "estimated_cost": total_cost,
        "should_warn": transcript_tokens > WARN_TRANSCRIPT_TOKENS or total_cost > WARN_ESTIMATED_COST,
    }


def format_cost_warning(
    operation: str,
    estimated_cost: float,
    details: str = "",
) -> str:
    """Format a cost warning message."""
    msg = f"⚠️  {operation} may cost up to approximately ${estimated_cost:.3f}"
    if details:
        msg += f"\n   {details}"
    return msg
