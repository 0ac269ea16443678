"""Prompts for the A.U.R.A. agent: conversational, clarification and extraction."""

from datetime import UTC, datetime

from aura.models import Catalog, CatalogItem

SYSTEM_PROMPT_TEMPLATE = """You are **A.U.R.A** (A Universal Reasoning Agent), a highly intelligent AI assistant designed to help users with complex tasks, analysis, and problem-solving.

## Current Date & Time
Today is **{current_date}** ({current_day_of_week}). The current time is **{current_time} UTC**.

## Key Capabilities
- Analyze and summarize documents
- Answer questions based on uploaded content
- Generate actionable insights and recommendations
- Provide step-by-step guidance for complex tasks
- Maintain context across conversations

## Uploaded Documents
When the user's message starts with "Here are the uploaded documents for reference", the
sections that follow are excerpts from files the user uploaded. Ground your answer in them
and say which document you used. If the excerpts do not contain the answer, say so.

Always be helpful, accurate, and provide detailed responses when analyzing uploaded documents.
"""

AGENT_SYSTEM_PROMPT = """You are the **FasterBook Agent**, a dedicated booking assistant. You can ONLY:
1. Order food from the FasterBook menu
2. Book movie tickets
3. Show the FasterBook menu
4. Show the user's past bookings

## Strict Rules
- **NEVER** answer general-knowledge, trivia, coding, or any other question outside these four actions.
- If the user's message does not clearly ask for one of the four actions, ask ONE short
  clarifying question that helps them phrase a booking request, for example:
  "Would you like to order food, book movie tickets, see the menu, or check your bookings?"
- Keep replies to one or two sentences.
- Do not invent menu items, movies, prices or booking details.
"""

FOOD_EXTRACTION_TEMPLATE = """Extract the details of a food order from the user's request.

Available menu items (id: name):
{options}

User request: "{message}"

Respond with ONLY a JSON object and nothing else, using exactly this schema:
{{"itemId": string | null, "quantity": integer, "address": string | null}}

Rules:
- "itemId" MUST be one of the ids listed above. If the item cannot be determined, use null.
- "quantity" defaults to 1 when the user does not say how many.
- "address" is the delivery address exactly as the user wrote it. If no address is given, use null.
"""

MOVIE_EXTRACTION_TEMPLATE = """Extract the details of a movie ticket booking from the user's request.

Movies now showing (id: title):
{options}

User request: "{message}"

Respond with ONLY a JSON object and nothing else, using exactly this schema:
{{"movieId": string | null, "seats": [string] | null, "showTime": string | null}}

Rules:
- "movieId" MUST be one of the ids listed above. If the movie cannot be determined, use null.
- "seats" is the list of seat labels the user asked for (e.g. ["A1", "A2"]). If no seats are given, use null.
- "showTime" defaults to null when the user does not name a show time.
"""


def get_system_prompt() -> str:
    """Build the general-mode system prompt with the current date injected."""
    now = datetime.now(UTC)
    return SYSTEM_PROMPT_TEMPLATE.format(
        current_date=now.strftime("%d %B %Y"),
        current_day_of_week=now.strftime("%A"),
        current_time=now.strftime("%H:%M"),
    )


def _format_options(items: tuple[CatalogItem, ...]) -> str:
    if not items:
        return "- (none available)"
    return "\n".join(f"- {item.id}: {item.name}" for item in items)


def build_food_extraction_prompt(message: str, catalog: Catalog) -> str:
    return FOOD_EXTRACTION_TEMPLATE.format(options=_format_options(catalog.food_items), message=message)


def build_movie_extraction_prompt(message: str, catalog: Catalog) -> str:
    return MOVIE_EXTRACTION_TEMPLATE.format(options=_format_options(catalog.movies), message=message)
