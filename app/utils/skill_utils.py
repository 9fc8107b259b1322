# app/utils/skill_utils.py

import re
from typing import Dict, Iterable, List, Optional

# === Skill category catalogue ===
# Technologies a candidate implicitly asks for when naming a category.

SKILL_CATEGORY_MAPPING: Dict[str, List[str]] = {
    "Frontend Developer": [
        "HTML", "CSS", "JavaScript", "TypeScript",
        "React", "Vue.js", "Angular", "Svelte", "Next.js",
        "State Management (Redux, Vuex, Pinia)",
        "Responsive Design", "API Integration", "Jest", "Cypress",
    ],
    "Java Backend Developer": [
        "Java", "Spring Boot", "Hibernate/JPA",
        "REST APIs", "Microservices", "SQL", "NoSQL",
        "Kafka", "RabbitMQ", "Redis", "Docker", "Kubernetes",
        "CI/CD (Jenkins, GitHub Actions)", "JUnit", "Mockito",
    ],
    "Python Backend Developer": [
        "Python", "Django", "Flask", "FastAPI",
        "REST APIs", "SQLAlchemy", "PostgreSQL", "MySQL",
        "Celery", "Redis", "Microservices", "Docker",
        "Kubernetes", "CI/CD", "Pytest",
    ],
    ".NET Backend Developer": [
        "C#", ".NET Core", "ASP.NET", "Entity Framework",
        "SQL Server", "REST APIs", "Microservices",
        "Docker", "Kubernetes", "CI/CD", "Redis", "xUnit",
    ],
    "Full Stack Developer": [
        "Angular", "React", "Node.js", "Express.js", "Java", "Spring Boot", "MongoDB",
        "JavaScript", "TypeScript", "REST APIs", "GraphQL", "Microservices",
        "JWT/Auth", "State Management", "Docker", "CI/CD",
    ],
    "Mobile Developer (Android)": [
        "Java", "Kotlin", "Android SDK", "Jetpack Compose",
        "XML Layouts", "SQLite", "Room", "REST APIs", "Firebase",
        "Unit Testing (JUnit, Espresso)",
    ],
    "Mobile Developer (iOS)": [
        "Swift", "SwiftUI", "Objective-C",
        "iOS SDK", "CoreData", "SQLite",
        "REST APIs", "Firebase", "Unit Testing (XCTest)",
    ],
    "Mobile Developer (Cross-Platform)": [
        "React Native", "Flutter", "Dart",
        "JavaScript", "TypeScript", "REST APIs",
        "Firebase", "SQLite", "CI/CD",
    ],
    "DevOps Engineer": [
        "Linux", "Shell Scripting", "CI/CD Pipelines",
        "Docker", "Kubernetes", "Terraform", "Ansible",
        "AWS", "GCP", "Azure", "Monitoring (Prometheus, Grafana)",
        "Logging (ELK Stack)", "Git", "Networking Basics",
    ],
}

_CATEGORY_INDEX = {name.lower(): techs for name, techs in SKILL_CATEGORY_MAPPING.items()}


def related_technologies(category: str) -> List[str]:
    return _CATEGORY_INDEX.get(category.strip().lower(), [])


# === Case-insensitive matching ===

def _norm(value: str) -> str:
    return value.strip().lower()


def exact_match(needle: str, haystack: Iterable[str]) -> Optional[str]:
    key = _norm(needle)
    return next((item for item in haystack if _norm(item) == key), None)


def substring_match(needle: str, haystack: Iterable[str]) -> Optional[str]:
    """First entry that contains `needle` or is contained in it, ignoring case."""
    key = _norm(needle)
    if not key:
        return None
    for item in haystack:
        other = _norm(item)
        if other and (key in other or other in key):
            return item
    return None


# === Experience parsing ===

def parse_experience(experience: Optional[str]) -> int:
    """
    Years of experience from free text such as "3 years", "3-5" or "5+": the
    first number wins, so "0-1 years" is 0. Text without digits ("entry
    level") is read by keyword and otherwise falls back to 2 years.
    """
    if not experience:
        return 0
    lowered = experience.lower()
    numbers = re.findall(r"\d+", lowered)
    if numbers:
        return int(numbers[0])
    if "entry" in lowered:
        return 1
    return 2
