"""
AI Question Generator Prompt Templates

Contains structured prompts for generating a complete, unique question set
in one request, following a per-type quota.
"""

from prepwise.models.question import QuestionGenerationRequest


class GeneratorPrompts:
    """
    Prompt templates for AI question-set generation.

    Key principles:
    - Exactly the requested number of questions
    - Strict per-type distribution
    - No two questions alike
    - Machine-readable JSON output
    """

    SYSTEM_CONTEXT = (
        "You are an expert technical interviewer. Generate UNIQUE, DIVERSE interview "
        "questions. Each question must be completely different from the others. Use "
        "proper formatting with \\n for line breaks in JSON strings. Return only valid "
        "JSON, no additional text."
    )

    VARIETY_EXAMPLES = """
QUESTION VARIETY EXAMPLES:
For technical-coding: array manipulation, string processing, tree traversal, dynamic programming, sorting algorithms
For system-design: database design, API architecture, caching strategies, microservices, load balancing
For behavioral: conflict resolution, leadership, project management, learning experiences, teamwork
For technical-concepts: OOP principles, design patterns, data structures, algorithm complexity, best practices
For debugging: reading stack traces, race conditions, memory leaks, flaky tests, performance regressions
"""

    def generate_question_set_prompt(self, request: QuestionGenerationRequest) -> str:
        """Generate the prompt for a full question set."""

        context = request.to_prompt_context()

        distribution = "\n".join(
            f"- {question_type.value}: {count} questions ({question_type.description})"
            for question_type, count in request.type_quotas.items()
            if count > 0
        )

        return f"""You are generating interview questions for a {context['role']} position at {context['company']}.

REQUIREMENTS:
- Generate exactly {context['target_count']} COMPLETELY DIFFERENT and UNIQUE questions
- Each question must be distinct and cover different aspects
- No two questions should be similar or test the same concept
- Proficiency level: {context['proficiency']}
- Skills focus: {context['skills']}
- The "category" of every question must be one of: {context['skills']}

QUESTION DISTRIBUTION:
{distribution}

FORMATTING REQUIREMENTS:
- For coding questions: include properly formatted code with \\n for line breaks
- Use markdown formatting: **bold**, `code`, bullet points
- Structure answers with clear sections and proper spacing
{self.VARIETY_EXAMPLES}
Generate exactly {context['target_count']} questions following this distribution.

Return a JSON object with this exact structure:
{{
  "questions": [
    {{
      "question": "unique question text",
      "type": "question-type",
      "category": "skill category",
      "difficulty": "{context['proficiency']}",
      "answer": "comprehensive formatted answer with \\n line breaks",
      "explanation": "what this question tests",
      "links": ["url1", "url2"]
    }}
  ]
}}"""
