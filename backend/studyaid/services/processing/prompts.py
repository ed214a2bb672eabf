"""
Document Processing Prompts

LLM prompts for turning document text into study material:
1. Chunk prompt: per-section summary, key points and keywords
2. Combine prompt: merges section results into the final study material
3. Single prompt: one-shot analysis of short documents, with source quotes

All prompts request JSON only.
"""


# =============================================================================
# Shared requirement blocks
# =============================================================================

_REQUIREMENTS = """=== SHORT SUMMARY REQUIREMENTS (4-6 sentences, ~80-120 words) ===
Must include:
1. What this document/topic IS (clear definition or classification)
2. The MAIN PURPOSE or problem it addresses
3. 2-3 KEY CONCEPTS or components that are essential to understand
4. WHY this matters (practical significance or applications)
5. A memorable takeaway or thesis statement

=== DETAILED SUMMARY REQUIREMENTS (300-400 words, structured with headers) ===
Include section headers DIRECTLY in the text using this EXACT format with double newlines between sections:

**INTRODUCTION:** [2-3 sentences defining the topic and its significance]

**CORE CONCEPTS:** [Fundamental principles, theories, formulas, and definitions]

**KEY COMPONENTS:** [Key components, methods, or processes and how they relate]

**APPLICATIONS:** [Real-world applications and concrete examples]

**CONNECTIONS:** [How this connects to broader topics and future implications]

**KEY TAKEAWAYS:** [2-3 sentences of what students MUST remember for exams]

=== BULLET POINTS (STUDY NOTES) REQUIREMENTS - Generate exactly 8 ===
Actionable study notes, not just summaries. Each bullet should be one of:
- DEFINITION: "[Term]: [clear, concise definition that could appear on an exam]"
- FORMULA/EQUATION: "[Name]: [formula] where [explain variables]"
- KEY DISTINCTION: "[Concept A] vs [Concept B]: [explain the difference]"
- PROCESS/STEPS: "[Process name]: Step 1... Step 2... Step 3..."
- CAUSE/EFFECT: "[X] leads to [Y] because [explanation]"
- EXAMPLE: "[Concept] example: [concrete real-world example]"
- COMMON MISTAKE: "Common error: [what students often get wrong]"
- MEMORY AID: "Remember: [mnemonic or memorable way to recall]"

=== KEYWORDS REQUIREMENTS ===
Generate exactly 8 keywords/terms a student should know for an exam

=== STUDY QUESTIONS REQUIREMENTS ===
Generate exactly 5 questions:
- Easy (1): Tests basic recall or definition
- Medium (2): Tests understanding of relationships or applications
- Hard (2): Tests analysis, synthesis, or problem-solving
Include DETAILED answers (2-3 sentences each) that explain the reasoning"""


# =============================================================================
# Chunk analysis
# =============================================================================

CHUNK_PROMPT = """You are analyzing part {chunk_number} of {total_chunks} of an academic document.

Extract the key information from this section:

TEXT:
{text}

Respond with JSON only:
{{
  "summary": "2-3 sentence summary of THIS section",
  "keyPoints": ["key point 1", "key point 2", "key point 3"],
  "keywords": ["keyword1", "keyword2", "keyword3"]
}}

Rules:
- Return ONLY valid JSON, no markdown
- Focus on the main ideas in THIS section
- Be concise but comprehensive"""


# =============================================================================
# Combining chunk results
# =============================================================================

COMBINE_PROMPT = (
    """You are an expert academic tutor creating study materials for university students. You have analyzed a document in {section_count} sections. Here are the section summaries and key points:

SECTION SUMMARIES:
{section_summaries}

ALL KEY POINTS:
{key_points}

ALL KEYWORDS FOUND:
{keywords}

Now create a comprehensive final analysis. Respond with this exact JSON structure:
{{
  "shortSummary": "...",
  "detailedSummary": "...",
  "bulletPoints": ["STUDY NOTE 1", "...", "STUDY NOTE 8"],
  "keywords": ["keyword1", "...", "keyword8"],
  "studyQuestions": [
    {{"question": "Q1?", "answer": "A1", "difficulty": "easy"}},
    {{"question": "Q2?", "answer": "A2", "difficulty": "medium"}},
    {{"question": "Q3?", "answer": "A3", "difficulty": "hard"}},
    {{"question": "Q4?", "answer": "A4", "difficulty": "medium"}},
    {{"question": "Q5?", "answer": "A5", "difficulty": "hard"}}
  ]
}}

"""
    + _REQUIREMENTS.replace("{", "{{").replace("}", "}}")
    + """

Rules:
- Return ONLY valid JSON, no markdown code blocks
- Create a cohesive summary that ties all sections together
- Prioritize the most important points and keywords
- Write in clear, educational language suitable for university students"""
)


# =============================================================================
# Single-pass analysis with citations
# =============================================================================

SINGLE_PROMPT = (
    """You are an expert academic tutor creating study materials for university students. Analyze this academic text and create comprehensive, learning-focused content.

CRITICAL REQUIREMENT: For EVERY bullet point and study question, include a "sourceQuote" field containing the EXACT text from the document that supports it.

TEXT:
{text}

Respond with this exact JSON structure:
{{
  "shortSummary": "...",
  "detailedSummary": "...",
  "bulletPoints": [
    {{"text": "STUDY NOTE 1", "sourceQuote": "exact quote from document"}},
    {{"text": "...", "sourceQuote": "..."}}
  ],
  "keywords": ["keyword1", "...", "keyword8"],
  "studyQuestions": [
    {{"question": "Q1?", "answer": "A1", "difficulty": "easy", "sourceQuote": "exact text supporting this Q&A"}},
    {{"question": "...", "answer": "...", "difficulty": "medium", "sourceQuote": "..."}}
  ]
}}

=== SOURCE QUOTE REQUIREMENTS ===
The "sourceQuote" field must contain the EXACT words from the TEXT above.
- Copy the relevant sentence(s) VERBATIM from the document
- Keep quotes 10-50 words for clarity
- The quote must directly support the claim/note/question

"""
    + _REQUIREMENTS.replace("{", "{{").replace("}", "}}")
    + """

Rules:
- Return ONLY valid JSON, no markdown code blocks
- Be specific and precise, avoid vague or generic statements
- Prioritize exam-relevant information
- ALWAYS include sourceQuote with exact text from the document"""
)
