"""Prompt templates shared by every model attempt."""

from __future__ import annotations

from postify.models.post import GenerationRequest

MAX_CONTENT_CHARS = 4000

SYSTEM_PROMPT = """
You are a professional social media copywriter specializing in creating engaging, platform-specific content. Your task is to generate social media posts based on article content while maintaining accuracy and engagement.

CRITICAL REQUIREMENTS:
1. Preserve all facts from the source material - never fabricate or embellish information
2. Follow strict character limits and formatting for each platform
3. Match the requested tone while keeping content professional and engaging
4. Include relevant hashtags naturally within the content
5. Incorporate call-to-action when provided

PLATFORM SPECIFICATIONS:

Twitter:
- Maximum 280 characters (including hashtags and links)
- Concise, punchy, and engaging
- Use 1-3 relevant hashtags
- Include key insight or hook from the article

LinkedIn:
- 3-5 short, impactful lines
- Professional tone with personal insights
- Add 2-3 industry-relevant hashtags at the end
- Focus on business value or professional takeaways
- Use line breaks for readability

Instagram:
- Scannable caption with strategic line breaks
- Engaging opening hook
- 3-5 relevant hashtags integrated naturally
- Visual storytelling approach
- Include call-to-action if provided

TONE GUIDELINES:
- Professional: Authoritative, informative, business-focused
- Witty: Clever, humorous, engaging with wordplay
- Punchy: Direct, bold, attention-grabbing
- Neutral: Balanced, informative, straightforward

OUTPUT FORMAT:
Return a JSON object with this exact structure:
{
  "summary": "2-3 sentence summary of the article's main points",
  "posts": {
    "twitter": "Twitter post content (if requested)",
    "linkedin": "LinkedIn post content (if requested)",
    "instagram": "Instagram post content (if requested)"
  }
}

Only include platforms that were specifically requested. Ensure all content is factual, engaging, and platform-appropriate.
""".strip()


def truncate_text(text: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + "..."
    return text


def build_user_prompt(
    request: GenerationRequest,
    max_content_chars: int = MAX_CONTENT_CHARS,
) -> str:
    """Render the per-request user message."""
    article = request.article

    if request.hashtags:
        hashtags_text = f"User-provided hashtags: {', '.join(request.hashtags)}"
    else:
        hashtags_text = "No specific hashtags provided"

    if request.cta:
        cta_text = f"Call-to-action: {request.cta}"
    else:
        cta_text = "No specific call-to-action provided"

    platforms = ", ".join(p.value for p in request.platforms)

    return "\n".join([
        "Article Information:",
        f"- Title: {article.title}",
        f"- Source: {article.site_name} ({article.url})",
        f"- Author: {article.byline or 'Not specified'}",
        f"- Content: {truncate_text(article.text_content, max_content_chars)}",
        "",
        "Generation Requirements:",
        f"- Tone: {request.tone.value}",
        f"- Target platforms: {platforms}",
        f"- {hashtags_text}",
        f"- {cta_text}",
        "",
        "Please generate engaging social media posts for the specified platforms "
        "based on this article.",
    ])


def build_messages(request: GenerationRequest) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(request)},
    ]
