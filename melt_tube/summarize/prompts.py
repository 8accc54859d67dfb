"""Prompt templates for summarization."""

CHUNK_SYSTEM = """You are summarizing part {chunk_number} of {total_chunks} from a video transcript.
Each part is being processed independently. Focus on clearly identifying the topics and information
in your assigned section without making assumptions about other sections.
Use clear section labels and structured formatting."""

CHUNK_INSTRUCTIONS = """Focus on main points and keep the style structured in bullets, lists, etc
as much as is logical, labeling any key sections you identify. Ignore sponsorships and promotional
content, include important details and steps of processes. Here is the section to summarize:

{chunk}"""

FIRST_CHUNK_PROMPT = (
    "Please summarize this video transcript section ({chunk_number}/{total_chunks}). "
    "This section may contain the video introduction. " + CHUNK_INSTRUCTIONS
)

CHUNK_PROMPT = (
    "Please summarize this independent section ({chunk_number}/{total_chunks}) of a video "
    "transcript. This may be from any point in the video. " + CHUNK_INSTRUCTIONS
)

MERGE_SYSTEM = """You are combining independently summarized sections of a video transcript.
Focus on clearly identifying the topics and information given to create a cohesive final summary
that eliminates redundancy. Use clear section labels and structured formatting, maintaining
consistent formatting and structure. Always number lists."""

MERGE_PROMPT = """Please combine these independent video transcript summary sections into a single,
cohesive summary. Eliminate redundancies, keep the style structured in bullets, lists, etc as much
as is logical, and ensure good logical cohesion that can be followed. Include important details and
steps of processes. Here is the text of the independent summary sections to combine:

{parts}"""

PART_TEMPLATE = "Part {number}:\n{summary}"
