EXTRACT_PROMPT = (
    "Extract all user comments from this screenshot. "
    "Return ONLY a JSON array of strings, one string per comment. Rules: "
    "1. Include only the actual comment text. "
    "2. Skip usernames, timestamps, reaction counts and any other UI elements. "
    "3. Preserve the original language and wording exactly; do not translate or correct. "
    "4. Skip empty comments."
)

CLASSIFY_SYSTEM_INSTRUCTION = (
    "You are an expert in customer sentiment analysis. Classify each comment in a NUANCED and "
    "OBJECTIVE way.\n"
    "POSITIVE: satisfaction, compliments, thanks ('C'est top', 'Merci', 'Bravo'); mostly positive "
    "opinions even with a minor reservation.\n"
    "NEGATIVE: technical problems, bugs, slowness; dissatisfaction, disappointment, anger; clear "
    "irony or sarcasm; mixed opinions where the negative clearly dominates.\n"
    "NEUTRAL: questions; facts or observations without a value judgement; ambiguous comments.\n"
    "Golden rule: for a mixed comment, ask whether the user is overall happy (positive) or "
    "unhappy (negative)."
)

CLASSIFY_PROMPT = (
    "Analyze the following customer comment.\n\n"
    "REFERENCE EXAMPLES:\n"
    "- \"Super appli, j'adore !\" -> POSITIVE\n"
    "- \"L'interface est belle mais ça rame trop, c'est chiant.\" -> NEGATIVE\n"
    "- \"Franchement déçu par la mise à jour.\" -> NEGATIVE\n"
    "- \"Super appli, manque juste le mode sombre.\" -> POSITIVE\n"
    "- \"Comment on change la langue ?\" -> NEUTRAL\n"
    "- \"Service client réactif, merci.\" -> POSITIVE\n\n"
    "COMMENT TO ANALYZE:\n"
    "\"\"\"{comment}\"\"\"\n\n"
    "1. Write one short sentence of 'reasoning'.\n"
    "2. Derive the sentiment from it (positive, negative, neutral).\n"
    "3. Identify the topic and the theme.\n"
    "Return the result as JSON."
)

# structured-output schemas (Gemini OpenAPI subset)
EXTRACT_SCHEMA = {
    "type": "ARRAY",
    "items": {"type": "STRING"},
}

CLASSIFY_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "reasoning": {"type": "STRING"},
        "sentiment": {"type": "STRING", "enum": ["positive", "negative", "neutral"]},
        "confidence": {"type": "NUMBER"},
        "topic": {"type": "STRING"},
        "theme": {"type": "STRING"},
    },
    "required": ["reasoning", "sentiment", "topic", "theme"],
}
