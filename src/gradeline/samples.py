# Copyright (c) Syntropy Systems
"""Sample datasets and graders for trying gradeline out.

Each dataset mixes wrong expected outputs (every grader should fail),
correct but verbose ones (Strict or Format may fail) and correct, concise
ones (most graders pass).
"""
from __future__ import annotations

from gradeline.models import Dataset, Grader, TestCase
from gradeline.store import new_id

SAMPLE_DATASETS: dict[str, list[tuple[str, str]]] = {
    "Math facts": [
        ("What is 2 + 2?", "4"),
        ("What is 3 × 4?", "I believe the answer is 12."),
        ("What is 10 − 3?", "6"),
        ("What is the square root of 64?", "32"),
        ("What is 12 × 12?", "One hundred forty-four."),
        ("What is 15 ÷ 3?", "5"),
        ("How many sides does a hexagon have?", "5"),
        ("What is 7 × 8?", "The result of 7 times 8 equals 56."),
    ],
    "Geography": [
        ("Capital of France?", "Paris"),
        ("Capital of Japan?", "The capital city of Japan is Tokyo."),
        ("Largest country by area?", "Canada"),
        ("Capital of Brazil?", "Rio de Janeiro"),
        ("Capital of Australia?", "Canberra"),
        ("Capital of South Korea?", "Seoul is the capital."),
        ("Capital of Italy?", "Milan"),
        ("Capital of China?", "Shanghai"),
    ],
    "Vocabulary": [
        ("Antonym of 'benevolent'?", "Malevolent"),
        ("Meaning of 'ambiguous'?", "Very clear and obvious."),
        ("Synonym for 'enormous'?", "Massive"),
        ("Meaning of 'concise'?", "Brief and to the point."),
        ("Define 'ephemeral'.", "Short-lived or lasting a very short time."),
        ("Define 'ambiguous'.", "Unclear; having more than one possible meaning."),
        ("Meaning of 'verbose'?", "Using more words than needed."),
        ("Synonym for 'authentic'?", "Genuine"),
    ],
    "Logic": [
        ("If all A are B and all B are C, are all A C?", "Yes"),
        ("Can a proposition be both true and false in classical logic?", "No"),
        ("Is 'if P then Q' equivalent to 'if not Q then not P'?", "Yes, contrapositive."),
        ("Does 'all A are B' imply 'all B are A'?", "No"),
        ("True or false: (A and B) implies A.", "True"),
        ("If P or Q is true and P is false, what can we conclude?", "Q is true."),
        ("Is the converse of a true statement always true?", "No"),
        ("If X implies Y and Y is false, what about X?", "X must be false."),
    ],
    "Science": [
        ("Chemical symbol for water?", "H2O"),
        ("What is the chemical symbol for gold?", "Go"),
        ("How many planets in our solar system?", "8"),
        ("Primary gas in Earth's atmosphere?", "Nitrogen"),
        ("How many bones in the adult human body?", "Approximately 206 bones."),
        ("Chemical symbol for table salt?", "NaCl"),
        ("What is the boiling point of water in Celsius?", "100"),
        ("What is the chemical symbol for iron?", "Fe"),
    ],
    "History": [
        ("In what year did World War II end?", "1944"),
        ("Who was the first president of the United States?", "George Washington"),
        ("When did India gain independence?", "1950"),
        ("When did the French Revolution begin?", "1789"),
        ("When did the Roman Empire fall?", "The Western Roman Empire fell in 476 CE."),
        ("Who invented the printing press?", "Johannes Gutenberg"),
        ("In what year did the Titanic sink?", "1912"),
        ("Who built the Great Wall of China?", "Qin Shi Huang"),
    ],
    "General knowledge": [
        ("How many days in a leap year?", "366"),
        ("What is the smallest prime number?", "1"),
        ("How many continents are there?", "6"),
        ("What color is the sky on a clear day?", "Blue"),
        ("How many legs does a spider have?", "Eight legs."),
        ("How many hours in a day?", "24"),
        ("Who wrote Romeo and Juliet?", "William Shakespeare"),
        ("What is the capital of the United States?", "Washington, D.C."),
    ],
}

# (name, description, rubric)
SAMPLE_GRADERS: list[tuple[str, str, str]] = [
    (
        "Correctness",
        "Pass if the answer is correct and matches expected.",
        "Pass when the response is factually correct and matches the expected output. "
        "Fail on errors or irrelevant answers.",
    ),
    (
        "Strict",
        "Strict grading: require precise wording.",
        "Pass only when the response is correct and precise. Fail on ambiguity, "
        "extra irrelevant content, or minor inaccuracies.",
    ),
    (
        "Lenient",
        "Lenient: accept equivalent or partial answers.",
        "Pass when the response is correct or substantially equivalent to the expected "
        "output. Fail only on clearly wrong answers.",
    ),
    (
        "Format",
        "Check that the answer format is appropriate.",
        "Pass when the response is in the expected format (e.g. number, short phrase, "
        "yes/no) and correct. Fail on wrong format or wrong content.",
    ),
    (
        "Completeness",
        "Require complete and unambiguous answers.",
        "Pass when the response fully answers the question and is correct. "
        "Fail on incomplete, vague, or incorrect answers.",
    ),
]


def sample_datasets() -> list[Dataset]:
    """Build the sample datasets with fresh ids."""
    return [
        Dataset(
            id=new_id(),
            name=name,
            test_cases=[
                TestCase(id=new_id(), input=input, expected_output=expected)
                for input, expected in cases
            ],
        )
        for name, cases in SAMPLE_DATASETS.items()
    ]


def sample_graders() -> list[Grader]:
    """Build the sample graders with fresh ids."""
    return [
        Grader(id=new_id(), name=name, description=description, rubric=rubric)
        for name, description, rubric in SAMPLE_GRADERS
    ]
