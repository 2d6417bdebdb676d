"""Static question bank, five questions per category ordered by difficulty."""
from typing import Dict, List, NamedTuple, Optional


class Question(NamedTuple):
    text: str
    difficulty: str


CATEGORIES = ["java", "python", "frontend", "php", "react", "nodejs"]

DEFAULT_CATEGORY = "frontend"

CATEGORY_LABELS = {
    "java": "Java",
    "python": "Python",
    "frontend": "Frontend Development",
    "php": "PHP",
    "react": "React",
    "nodejs": "Node.js",
}

QUESTION_BANK: Dict[str, List[Question]] = {
    "java": [
        Question("What is the difference between JDK, JRE, and JVM?", "beginner"),
        Question("Explain the concept of Object-Oriented Programming in Java.", "beginner"),
        Question("How does garbage collection work in Java?", "intermediate"),
        Question("Explain the difference between abstract class and interface.", "intermediate"),
        Question("How would you optimize a Java application for high performance?", "advanced"),
    ],
    "python": [
        Question("What are the key features of Python that make it popular?", "beginner"),
        Question("Explain the difference between a list and a tuple in Python.", "beginner"),
        Question("Explain Python's Global Interpreter Lock (GIL).", "intermediate"),
        Question("What are generators and when would you use them?", "intermediate"),
        Question("How would you implement concurrent programming in Python?", "advanced"),
    ],
    "frontend": [
        Question("What is the difference between HTML, CSS, and JavaScript?", "beginner"),
        Question("Explain the CSS Box Model.", "beginner"),
        Question("What are closures in JavaScript?", "intermediate"),
        Question("Explain the event loop in JavaScript.", "intermediate"),
        Question("How would you optimize the performance of a web application?", "advanced"),
    ],
    "php": [
        Question("What are the differences between PHP 7 and PHP 8?", "beginner"),
        Question("Explain the difference between include and require in PHP.", "beginner"),
        Question("How does session management work in PHP?", "intermediate"),
        Question("Explain the MVC pattern in PHP frameworks.", "intermediate"),
        Question("How do you prevent SQL injection in PHP?", "advanced"),
    ],
    "react": [
        Question("What is React and why would you use it?", "beginner"),
        Question("Explain the difference between state and props.", "beginner"),
        Question("What is the Virtual DOM and how does it work?", "intermediate"),
        Question("What is Context API and when would you use it?", "intermediate"),
        Question("How do you optimize performance in React applications?", "advanced"),
    ],
    "nodejs": [
        Question("What is Node.js and how does it differ from browser JavaScript?", "beginner"),
        Question("Explain the Node.js event-driven architecture.", "beginner"),
        Question("How does the Event Loop work in Node.js?", "intermediate"),
        Question("Explain streams in Node.js and their types.", "intermediate"),
        Question("Explain the cluster module and how to scale Node.js applications.", "advanced"),
    ],
}


def is_valid_category(category: Optional[str]) -> bool:
    return category in QUESTION_BANK


def get_questions(category: Optional[str]) -> List[Question]:
    """Return the ordered questions for a category, falling back to frontend."""
    return list(QUESTION_BANK.get(category, QUESTION_BANK[DEFAULT_CATEGORY]))


def get_category_label(category: Optional[str]) -> str:
    return CATEGORY_LABELS.get(category, CATEGORY_LABELS[DEFAULT_CATEGORY])
