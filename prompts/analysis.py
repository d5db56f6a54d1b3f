"""
Analysis prompts: emotion classification, memory extraction, persona generation.

Each asks for a bare JSON object; replies are parsed with
utils.json_utils.extract_json_object.
"""

EMOTION_ANALYSIS_PROMPT = """Analyze the emotional tone of this message and return ONLY a JSON object with these fields:
- emotion: one of [happy, sad, angry, excited, neutral, frustrated, curious]
- sentiment: number between -1 (very negative) and 1 (very positive)
- mood: brief description of the user's mood

Message: "{message}"

Return only valid JSON:"""

MEMORY_EXTRACTION_PROMPT = """Extract any personal information, preferences, or important facts mentioned by the user in this conversation. Return ONLY a JSON object with these fields:
- facts: array of short statements about the user, e.g. "Name is John", "Works as a nurse"
- interests: array of mentioned interests or hobbies
- preferences: object with any stated preferences, using only these keys when they apply:
  conversationLength (brief | moderate | detailed), responseStyle (direct | empathetic | humorous | analytical),
  reminderFrequency (never | occasionally | frequently)
- experiences: array of significant experiences shared
- relationships: array of objects with name, relationship and details for people mentioned

Conversation:
{conversation}

Return only valid JSON:"""

PERSONA_GENERATION_PROMPT = """Based on this user profile, create a unique chatbot persona that would be a good conversational match. Return ONLY a JSON object with:
- name: a friendly name for the chatbot
- personality: brief personality description
- backstory: simple background story
- relationshipWithUser: how they should relate to this specific user

User Profile:
- Interests: {interests}
- Communication Style: {communication_style}
- Personality Traits: {personality_traits}

Return only valid JSON:"""
