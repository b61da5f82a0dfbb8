"""
Fallback question templates for PrepWise

Parametrized templates used when AI generation is unavailable or returns
too few usable questions. Each question type has its own vocabulary of
modifiers (the verb or situation that varies the question) and subjects
(the concrete problem). Rendering a template with a distinct modifier and
skill always yields distinct text.
"""

from urllib.parse import quote

from pydantic import BaseModel

from prepwise.models.assessment import QuestionType


class FallbackTemplate(BaseModel):
    """A parametrized question template for one question type."""

    question: str
    answer: str
    explanation: str
    modifiers: tuple[str, ...]
    subjects: tuple[str, ...]

    def render(self, skill: str, modifier: str, subject: str, role: str) -> tuple[str, str]:
        """Render (question text, sample answer)."""
        values = {
            "skill": skill,
            "modifier": modifier,
            "Modifier": modifier[:1].upper() + modifier[1:],
            "subject": subject,
            "Subject": subject[:1].upper() + subject[1:],
            "role": role,
        }
        return self.question.format(**values), self.answer.format(**values)


def resource_links(skill: str) -> tuple[str, ...]:
    """Further-reading links for a skill."""
    slug = quote(skill.strip().lower().replace(" ", "-"))
    return (
        f"https://developer.mozilla.org/en-US/search?q={quote(skill)}",
        f"https://github.com/topics/{slug}",
    )


FALLBACK_TEMPLATES: dict[QuestionType, FallbackTemplate] = {
    QuestionType.TECHNICAL_CODING: FallbackTemplate(
        question=(
            "Using {skill}, {modifier} a solution for {subject}. "
            "Provide time and space complexity analysis."
        ),
        answer=(
            "**Approach:**\n"
            "• Clarify the input constraints and edge cases (empty input, duplicates, very large input)\n"
            "• Choose a data structure that supports the operations {subject} needs\n"
            "• Walk the input once where possible and keep only the state you need\n\n"
            "**Sketch:**\n"
            "```\n"
            "def solve(items):\n"
            "    if not items:\n"
            "        return None\n"
            "    result = items[0]\n"
            "    for item in items[1:]:\n"
            "        result = combine(result, item)\n"
            "    return result\n"
            "```\n\n"
            "**Time Complexity:** O(n) for a single pass\n"
            "**Space Complexity:** O(1) beyond the input"
        ),
        explanation="This question tests your ability to write efficient algorithms and reason about complexity.",
        modifiers=(
            "implement", "design", "optimize", "write",
            "refactor", "test", "benchmark", "explain",
        ),
        subjects=(
            "finding the maximum element in an array",
            "reversing a linked list",
            "binary search over a sorted list",
            "sorting an array with merge sort",
            "finding the first non-repeating character in a string",
            "a stack backed by an array",
            "checking whether a string is a palindrome",
            "the intersection of two arrays",
        ),
    ),
    QuestionType.TECHNICAL_CONCEPTS: FallbackTemplate(
        question=(
            "{Modifier} the concept of {subject} in {skill}. "
            "How does it apply to {role} responsibilities?"
        ),
        answer=(
            "{Subject} in {skill}:\n\n"
            "**Core Principles:**\n"
            "• **Definition:** what {subject} is and the problem it solves\n"
            "• **Key Benefits:** better code organization, maintainability, and testability\n\n"
            "**Application for a {role}:**\n"
            "• Building scalable, reusable components\n"
            "• Keeping behaviour predictable as the codebase grows\n\n"
            "**Best Practices:**\n"
            "• Follow established patterns\n"
            "• Handle errors explicitly\n"
            "• Measure before optimizing"
        ),
        explanation="This question evaluates your theoretical understanding of core concepts and how clearly you explain them.",
        modifiers=(
            "explain", "compare", "analyze", "summarize",
            "evaluate", "illustrate", "critique", "teach",
        ),
        subjects=(
            "inheritance and polymorphism",
            "asynchronous programming",
            "memory management",
            "design patterns",
            "data binding",
            "state management",
            "error handling",
            "performance optimization",
        ),
    ),
    QuestionType.SYSTEM_DESIGN: FallbackTemplate(
        question=(
            "{Modifier} a scalable {subject} that relies on {skill}. "
            "Consider performance, scalability, and reliability."
        ),
        answer=(
            "System Design for a {subject}:\n\n"
            "**Architecture Overview:**\n"
            "• **API Gateway:** routing, authentication, rate limiting\n"
            "• **Services:** separate services per bounded context\n"
            "• **Storage:** primary database with read replicas\n"
            "• **Caching:** hot data and sessions in an in-memory cache\n"
            "• **Queue:** asynchronous processing for slow work\n\n"
            "**Scalability:** horizontal scaling, load balancing, sharding, CDN for static assets\n\n"
            "**Reliability:** health checks, circuit breakers, backups, monitoring and alerting"
        ),
        explanation="This tests your ability to design large-scale systems and weigh architectural trade-offs.",
        modifiers=(
            "design", "architect", "scale", "plan",
            "prototype", "evolve", "harden", "outline",
        ),
        subjects=(
            "chat application",
            "e-commerce platform",
            "social media feed",
            "video streaming service",
            "file storage system",
            "notification service",
            "search engine",
            "payment processing system",
        ),
    ),
    QuestionType.BEHAVIORAL: FallbackTemplate(
        question=(
            "Tell me about a time when you had to {modifier} while working with {skill}. "
            "What was your approach, and what did it mean for the {subject}?"
        ),
        answer=(
            "Use the STAR method:\n\n"
            "**Situation:** the context in which you had to {modifier}.\n\n"
            "**Task:** the goal, your role, the stakeholders and constraints.\n\n"
            "**Action:**\n"
            "• Analyzed the problem\n"
            "• Researched and compared options\n"
            "• Collaborated with the team\n"
            "• Implemented and monitored the chosen approach\n\n"
            "**Result:** the measurable outcome for the {subject} and what you learned about {skill}."
        ),
        explanation="This evaluates your soft skills, problem-solving approach, and ability to work effectively in a team.",
        modifiers=(
            "overcome a technical challenge",
            "work with a difficult team member",
            "meet a tight deadline",
            "learn a new technology quickly",
            "handle conflicting requirements",
            "lead a project initiative",
            "resolve a production issue",
            "mentor a junior developer",
        ),
        subjects=(
            "team", "project", "customer", "release",
            "codebase", "stakeholders", "product", "organization",
        ),
    ),
    QuestionType.PROBLEM_SOLVING: FallbackTemplate(
        question="How would you {modifier} {subject} in a {role} application that uses {skill}?",
        answer=(
            "**1. Understand:** restate the problem, gather data, identify scope and impact.\n\n"
            "**2. Break down:** split {subject} into independent parts and rank them by impact.\n\n"
            "**3. Decide:** compare options against explicit criteria (cost, risk, time).\n\n"
            "**4. Verify:** define how success is measured and follow up after the change."
        ),
        explanation="This tests your analytical thinking and how you structure an unfamiliar problem.",
        modifiers=(
            "approach", "break down", "prioritize", "estimate",
            "investigate", "simplify", "validate", "plan around",
        ),
        subjects=(
            "a performance issue reported by users",
            "conflicting feature requirements",
            "an ambiguous product request",
            "a capacity planning problem",
            "a data consistency problem",
            "a scaling bottleneck",
            "a failing third-party integration",
            "a cost overrun",
        ),
    ),
    QuestionType.CASE_STUDY: FallbackTemplate(
        question=(
            "Case study: {subject} built on {skill} needs to {modifier}. "
            "As a {role}, walk through how you would deliver this."
        ),
        answer=(
            "**Clarify the goal:** success metrics, timeline, budget, constraints.\n\n"
            "**Assess the current state:** architecture, team, risks, dependencies on {skill}.\n\n"
            "**Options:** at least two approaches with their trade-offs.\n\n"
            "**Plan:** phased delivery, milestones, owners, rollback strategy.\n\n"
            "**Measure:** dashboards and review points to confirm the outcome."
        ),
        explanation="This tests how you apply technical judgement to a realistic business scenario.",
        modifiers=(
            "launch in a new market",
            "cut infrastructure costs by 30%",
            "double its user base",
            "migrate off a legacy system",
            "meet new compliance rules",
            "recover from a major outage",
            "reduce customer churn",
            "integrate an acquired product",
        ),
        subjects=(
            "a retail startup",
            "a fintech company",
            "a healthcare provider",
            "a logistics platform",
            "a media company",
            "a SaaS vendor",
            "an online marketplace",
            "a travel booking site",
        ),
    ),
    QuestionType.ARCHITECTURE: FallbackTemplate(
        question=(
            "{Modifier} an architecture for {subject} using {skill}. "
            "Which design patterns would you apply and what trade-offs do they carry?"
        ),
        answer=(
            "**Context:** requirements and quality attributes for {subject}.\n\n"
            "**Structure:** layers or modules, their responsibilities and boundaries.\n\n"
            "**Patterns:** e.g. repository, adapter, event sourcing, CQRS where they fit.\n\n"
            "**Trade-offs:** complexity vs. flexibility, consistency vs. availability, build vs. buy.\n\n"
            "**Evolution:** how the design accommodates change without rewrites."
        ),
        explanation="This assesses your grasp of software design patterns and architectural decision making.",
        modifiers=(
            "propose", "compare options for", "review", "defend",
            "sketch", "modernize", "modularize", "document",
        ),
        subjects=(
            "a multi-tenant SaaS product",
            "an event-driven order pipeline",
            "a plugin system",
            "an offline-first mobile client",
            "a reporting backend",
            "a public API platform",
            "a monolith being split into services",
            "a real-time dashboard",
        ),
    ),
    QuestionType.DEBUGGING: FallbackTemplate(
        question=(
            "You need to {modifier} {subject} in a {skill} codebase. "
            "How would you find the root cause and confirm the fix?"
        ),
        answer=(
            "**1. Reproduce:** capture the failing conditions and gather logs and metrics.\n\n"
            "**2. Narrow down:** bisect recent changes, add targeted logging, use a debugger or profiler.\n\n"
            "**3. Fix:** make the smallest change that addresses the root cause of {subject}.\n\n"
            "**4. Confirm:** add a regression test, run the full suite, watch production metrics."
        ),
        explanation="This tests your debugging methodology and practical troubleshooting experience.",
        modifiers=(
            "debug", "trace", "isolate", "reproduce",
            "diagnose", "fix", "triage", "profile",
        ),
        subjects=(
            "an intermittent test failure",
            "a memory leak in a long-running process",
            "a race condition between two workers",
            "a sudden latency regression",
            "an off-by-one error in pagination",
            "a deadlock under load",
            "corrupted records after a deploy",
            "an unhandled exception in production",
        ),
    ),
}
