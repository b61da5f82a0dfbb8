"""
AI Evaluator Prompt Templates

Contains structured prompts for evaluating a completed assessment
in a single request.

Evaluation outputs:
- Overall score (0-100)
- Per-skill and per-question-type scores
- Per-question scores
- Assessed proficiency
- Feedback and recommendations
"""

from prepwise.models.assessment import AssessmentConfig
from prepwise.models.question import Question
from prepwise.models.session import AnswerRecord


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of a full answer set.

    Key principles:
    - Objective, rubric-based scoring
    - Consider technical accuracy and communication
    - Unanswered questions score zero
    - Machine-readable JSON output
    """

    SYSTEM_CONTEXT = (
        "You are an expert technical interviewer. Provide fair and constructive "
        "evaluation of interview answers, considering both technical accuracy and "
        "communication skills. You must respond with valid JSON only, no additional "
        "text or explanations."
    )

    SCORING_RUBRIC = """
=== SCORING RUBRIC (0-100 per question) ===
- 80-100: Correct and complete, well structured, covers edge cases
- 50-79: Partially correct, key ideas present but gaps or inaccuracies
- 1-49: Mostly incorrect, superficial, or off-topic
- 0: No answer provided
"""

    def generate_evaluation_prompt(
        self,
        questions: list[Question],
        answers: dict[str, AnswerRecord],
        config: AssessmentConfig
    ) -> str:
        """Generate prompt for evaluating every answer in a session."""

        blocks = []
        for i, question in enumerate(questions, start=1):
            record = answers.get(question.id)
            answer_text = record.answer.strip() if record and record.is_answered else "No answer provided"
            time_spent = record.time_spent if record else 0
            blocks.append(
                f"Question {i} (id: {question.id}, type: {question.question_type.value}, "
                f"category: {question.category}): {question.text}\n"
                f"Expected Answer: {question.sample_answer or 'Not provided'}\n"
                f"User Answer: {answer_text}\n"
                f"Time Spent: {time_spent} seconds"
            )

        categories = sorted({q.category for q in questions})
        types = sorted({q.question_type.value for q in questions})
        qa_section = "\n\n".join(blocks)

        return f"""Evaluate the following interview answers for a {config.role} position at {config.company or 'a technology company'}.
Target proficiency: {config.proficiency.value}
{self.SCORING_RUBRIC}
=== QUESTIONS AND ANSWERS ===
{qa_section}

=== YOUR TASK ===
Return ONLY a valid JSON object with this exact structure:
{{
  "score": 85,
  "assessedProficiency": "advanced",
  "categoryScores": {{"<category>": 90}},
  "typeScores": {{"<question-type>": 85}},
  "questionScores": {{"<question id>": 80}},
  "feedback": "Overall feedback text",
  "recommendations": ["recommendation 1", "recommendation 2"]
}}

All scores must be integers from 0 to 100.
assessedProficiency must be one of: beginner, intermediate, advanced, expert.
categoryScores must contain exactly these keys: {', '.join(categories)}
typeScores must contain exactly these keys: {', '.join(types)}
questionScores must contain every question id listed above."""
