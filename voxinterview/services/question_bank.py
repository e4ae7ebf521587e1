"""Static question bank: role profiles with ordered interview questions."""

import random

from voxinterview.models.schemas.interview import QuestionItem, Role, RoleProfile

DEFAULT_ROLE = Role.FRONTEND

ROLE_PROFILES: dict[Role, RoleProfile] = {
    Role.FRONTEND: RoleProfile(
        title="Frontend Developer",
        focus=["React", "UI/UX", "Performance", "Accessibility"],
        questions=[
            QuestionItem(id="fe-1", text="Tell me about a time you improved the performance of a web application."),
            QuestionItem(id="fe-2", text="How do you approach debugging a complex UI issue?"),
            QuestionItem(id="fe-3", text="Describe a component you designed that you're proud of."),
            QuestionItem(id="fe-4", text="Explain how React handles state updates."),
            QuestionItem(id="fe-5", text="What is the virtual DOM and why is it useful?"),
            QuestionItem(id="fe-6", text="How would you optimize a slow React application?"),
        ],
    ),
    Role.BACKEND: RoleProfile(
        title="Backend Developer",
        focus=["APIs", "Databases", "Scalability"],
        questions=[
            QuestionItem(id="be-1", text="Describe a backend system you designed."),
            QuestionItem(id="be-2", text="How do you handle performance bottlenecks?"),
            QuestionItem(id="be-3", text="Explain a time you improved system reliability."),
            QuestionItem(id="be-4", text="Explain the difference between REST and GraphQL."),
            QuestionItem(id="be-5", text="How do you handle authentication in an API?"),
            QuestionItem(id="be-6", text="What are common backend performance bottlenecks?"),
        ],
    ),
    Role.SECURITY: RoleProfile(
        title="Security Engineer",
        focus=["Threat modeling", "Defense", "Incident response"],
        questions=[
            QuestionItem(id="sec-1", text="How do you approach securing an API?"),
            QuestionItem(id="sec-2", text="Describe a vulnerability you've mitigated."),
            QuestionItem(id="sec-3", text="How do you think about threat modeling?"),
            QuestionItem(id="sec-4", text="What is the difference between authentication and authorization?"),
            QuestionItem(id="sec-5", text="How would you prevent SQL injection?"),
            QuestionItem(id="sec-6", text="Explain the principle of least privilege."),
        ],
    ),
}


def get_role_profile(role: Role | str) -> RoleProfile:
    """Return the profile for ``role``; unknown roles resolve to the frontend profile."""
    try:
        return ROLE_PROFILES[Role(role)]
    except ValueError:
        return ROLE_PROFILES[DEFAULT_ROLE]


def question_at(role: Role | str, index: int) -> QuestionItem | None:
    questions = get_role_profile(role).questions
    if 0 <= index < len(questions):
        return questions[index]
    return None


def random_question(role: Role | str, rng: random.Random | None = None) -> QuestionItem:
    return (rng or random).choice(get_role_profile(role).questions)
