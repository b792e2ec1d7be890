"""Static AMC 8 style question bank."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ..models.schemas import Difficulty, Question, Topic


class QuestionStoreEmptyError(RuntimeError):
    """The store must hold at least one question at process start."""


class QuestionStore:
    """Immutable, non-empty, ordered collection of questions."""

    def __init__(self, questions: Iterable[Question]) -> None:
        self._questions: Tuple[Question, ...] = tuple(questions)
        if not self._questions:
            raise QuestionStoreEmptyError("Question store is empty.")
        ids = [q.id for q in self._questions]
        if len(ids) != len(set(ids)):
            raise ValueError("Question ids must be unique within a store.")

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    def matching(
        self,
        topic: Optional[Topic] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> List[Question]:
        """Questions filtered by topic and difficulty; ``None`` means any."""
        return [
            q
            for q in self._questions
            if (topic is None or q.topic == topic)
            and (difficulty is None or q.difficulty == difficulty)
        ]

    def get(self, question_id: str) -> Optional[Question]:
        return next((q for q in self._questions if q.id == question_id), None)


def _q(
    qid: str,
    year: int,
    number: int,
    topic: Topic,
    difficulty: Difficulty,
    text: str,
    options: Sequence[str],
    answer: int,
    explanation: str,
    hint: str,
) -> Question:
    return Question(
        id=qid,
        year=year,
        question_number=number,
        problem_text=text,
        options=list(options),
        correct_option_index=answer,
        explanation=explanation,
        hint=hint,
        topic=topic,
        difficulty=difficulty,
    )


_E, _M, _H = Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD

_QUESTIONS: List[Question] = [
    # ── Algebra ──
    _q(
        "alg-01", 2016, 2, Topic.ALGEBRA, _E,
        "If 3x + 5 = 20, what is the value of x?",
        ["3", "4", "5", "6", "15"], 2,
        "Subtract 5 from both sides to get 3x = 15, so x = 5.",
        "Undo the addition first, then the multiplication.",
    ),
    _q(
        "alg-02", 2012, 1, Topic.ALGEBRA, _E,
        "What is the value of 2 × (3 + 4) − 5?",
        ["4", "9", "11", "13", "19"], 1,
        "Parentheses first: 3 + 4 = 7. Then 2 × 7 = 14 and 14 − 5 = 9.",
        "Follow the order of operations.",
    ),
    _q(
        "alg-03", 2018, 3, Topic.ALGEBRA, _E,
        "What is 15% of 80?",
        ["8", "10", "12", "15", "18"], 2,
        "10% of 80 is 8 and 5% is 4, so 15% is 8 + 4 = 12.",
        "Split 15% into 10% and 5%.",
    ),
    _q(
        "alg-04", 2014, 8, Topic.ALGEBRA, _M,
        "The sum of three consecutive integers is 72. What is the largest of the three?",
        ["23", "24", "25", "26", "27"], 2,
        "Write them as n − 1, n, n + 1. Their sum is 3n = 72, so n = 24 and the largest is 25.",
        "Center the three integers around an unknown middle value.",
    ),
    _q(
        "alg-05", 2011, 9, Topic.ALGEBRA, _M,
        "A number is doubled and then increased by 7. The result is 43. What is the number?",
        ["15", "16", "17", "18", "25"], 3,
        "2n + 7 = 43 gives 2n = 36, so n = 18.",
        "Work backwards: subtract 7, then halve.",
    ),
    _q(
        "alg-06", 2019, 11, Topic.ALGEBRA, _M,
        "Adult tickets cost $5 and child tickets cost $3. A total of 40 tickets were sold for $164. How many adult tickets were sold?",
        ["18", "20", "22", "24", "26"], 2,
        "With a adult tickets, 5a + 3(40 − a) = 164, so 2a + 120 = 164 and a = 22.",
        "If every ticket were a child ticket the total would be $120.",
    ),
    _q(
        "alg-07", 2021, 19, Topic.ALGEBRA, _H,
        "If x + 1/x = 5, what is the value of x² + 1/x²?",
        ["10", "21", "23", "25", "27"], 2,
        "Square both sides: x² + 2 + 1/x² = 25, so x² + 1/x² = 23.",
        "Square the given equation and look at the middle term.",
    ),
    # ── Geometry ──
    _q(
        "geo-01", 2015, 2, Topic.GEOMETRY, _E,
        "A rectangle has length 8 and width 5. What is its perimeter?",
        ["13", "26", "30", "40", "45"], 1,
        "Perimeter = 2 × (8 + 5) = 26.",
        "Add all four sides.",
    ),
    _q(
        "geo-02", 2013, 4, Topic.GEOMETRY, _E,
        "Two angles of a triangle measure 50° and 60°. What is the measure of the third angle?",
        ["50°", "60°", "70°", "80°", "90°"], 2,
        "The angles of a triangle sum to 180°, so the third angle is 180° − 110° = 70°.",
        "What do the three angles of a triangle add up to?",
    ),
    _q(
        "geo-03", 2017, 7, Topic.GEOMETRY, _M,
        "A right triangle has legs of length 6 and 8. What is the length of its hypotenuse?",
        ["9", "10", "12", "14", "48"], 1,
        "By the Pythagorean theorem, 6² + 8² = 36 + 64 = 100, and √100 = 10.",
        "Recall the 3-4-5 right triangle.",
    ),
    _q(
        "geo-04", 2010, 10, Topic.GEOMETRY, _M,
        "A square has the same perimeter as a 10 by 6 rectangle. What is the area of the square?",
        ["36", "60", "64", "72", "256"], 2,
        "The rectangle's perimeter is 32, so the square's side is 8 and its area is 64.",
        "Find the shared perimeter first.",
    ),
    _q(
        "geo-05", 2020, 12, Topic.GEOMETRY, _M,
        "What is the measure, in degrees, of each interior angle of a regular hexagon?",
        ["108", "120", "135", "144", "150"], 1,
        "The interior angles sum to (6 − 2) × 180 = 720, and 720 ÷ 6 = 120.",
        "Use (n − 2) × 180 for the angle sum.",
    ),
    _q(
        "geo-06", 2022, 18, Topic.GEOMETRY, _H,
        "A circle is inscribed in a square with side length 10. What is the area of the region inside the square but outside the circle?",
        ["100 − 25π", "100 − 10π", "100 − 50π", "25π − 50", "75"], 0,
        "The circle's radius is 5, so its area is 25π. Subtract from the square's area of 100.",
        "The circle's diameter equals the square's side.",
    ),
    # ── Number Theory ──
    _q(
        "num-01", 2014, 3, Topic.NUMBER_THEORY, _E,
        "What is the greatest common factor of 24 and 36?",
        ["4", "6", "8", "12", "72"], 3,
        "24 = 2³ · 3 and 36 = 2² · 3², so the GCF is 2² · 3 = 12.",
        "List the factors of the smaller number.",
    ),
    _q(
        "num-02", 2016, 5, Topic.NUMBER_THEORY, _E,
        "How many prime numbers are between 10 and 30?",
        ["4", "5", "6", "7", "8"], 2,
        "The primes are 11, 13, 17, 19, 23 and 29: six in all.",
        "Check each odd number that is not a multiple of 3 or 5.",
    ),
    _q(
        "num-03", 2018, 13, Topic.NUMBER_THEORY, _M,
        "What is the remainder when 2¹⁰ is divided by 7?",
        ["1", "2", "3", "4", "5"], 1,
        "2¹⁰ = 1024 and 7 × 146 = 1022, leaving a remainder of 2.",
        "Powers of 2 repeat with period 3 modulo 7.",
    ),
    _q(
        "num-04", 2012, 14, Topic.NUMBER_THEORY, _M,
        "What is the least common multiple of 8, 12 and 18?",
        ["24", "36", "48", "72", "144"], 3,
        "8 = 2³, 12 = 2² · 3, 18 = 2 · 3². The LCM is 2³ · 3² = 72.",
        "Take the highest power of each prime.",
    ),
    _q(
        "num-05", 2019, 20, Topic.NUMBER_THEORY, _H,
        "How many positive divisors does 360 have?",
        ["12", "18", "20", "24", "36"], 3,
        "360 = 2³ · 3² · 5, so it has (3 + 1)(2 + 1)(1 + 1) = 24 divisors.",
        "Factor 360 into primes first.",
    ),
    _q(
        "num-06", 2023, 21, Topic.NUMBER_THEORY, _H,
        "What is the units digit of 7²⁰²³?",
        ["1", "3", "5", "7", "9"], 1,
        "Units digits of powers of 7 cycle 7, 9, 3, 1. Since 2023 leaves remainder 3 when divided by 4, the units digit is 3.",
        "Find the repeating cycle of units digits.",
    ),
    # ── Counting & Probability ──
    _q(
        "cnt-01", 2015, 4, Topic.COUNTING_PROBABILITY, _E,
        "A fair six-sided die is rolled once. What is the probability of rolling a number greater than 4?",
        ["1/6", "1/3", "1/2", "2/3", "5/6"], 1,
        "Only 5 and 6 work, giving 2/6 = 1/3.",
        "Count the favorable outcomes.",
    ),
    _q(
        "cnt-02", 2011, 3, Topic.COUNTING_PROBABILITY, _E,
        "Jamal has 3 shirts and 4 pairs of pants. How many different outfits of one shirt and one pair of pants can he make?",
        ["7", "10", "12", "16", "24"], 2,
        "Each of the 3 shirts pairs with each of the 4 pants: 3 × 4 = 12.",
        "Use the multiplication principle.",
    ),
    _q(
        "cnt-03", 2013, 9, Topic.COUNTING_PROBABILITY, _M,
        "In how many ways can 5 students line up in a row?",
        ["25", "60", "100", "120", "720"], 3,
        "There are 5! = 5 × 4 × 3 × 2 × 1 = 120 orderings.",
        "Count the choices for each position in turn.",
    ),
    _q(
        "cnt-04", 2017, 10, Topic.COUNTING_PROBABILITY, _M,
        "Two fair coins are flipped. What is the probability of getting at least one head?",
        ["1/4", "1/3", "1/2", "2/3", "3/4"], 4,
        "The only outcome with no heads is TT, with probability 1/4, so the answer is 1 − 1/4 = 3/4.",
        "Use the complement.",
    ),
    _q(
        "cnt-05", 2020, 15, Topic.COUNTING_PROBABILITY, _M,
        "How many ways are there to choose a committee of 3 people from a group of 7?",
        ["21", "35", "42", "210", "343"], 1,
        "C(7, 3) = (7 × 6 × 5) / (3 × 2 × 1) = 35.",
        "Order does not matter in a committee.",
    ),
    _q(
        "cnt-06", 2022, 22, Topic.COUNTING_PROBABILITY, _H,
        "How many three-digit positive integers have digits whose sum is 5?",
        ["10", "12", "15", "18", "21"], 2,
        "Let the hundreds digit be a ≥ 1. With a' = a − 1, count solutions of a' + b + c = 4, which is C(6, 2) = 15.",
        "Try stars and bars after handling the leading digit.",
    ),
    # ── Logic & Word Problems ──
    _q(
        "log-01", 2012, 2, Topic.LOGIC, _E,
        "Maya reads 15 pages each day. How many days does she need to finish a 180-page book?",
        ["10", "11", "12", "13", "15"], 2,
        "180 ÷ 15 = 12 days.",
        "Divide the total by the daily amount.",
    ),
    _q(
        "log-02", 2010, 5, Topic.LOGIC, _E,
        "A store sells pencils at 3 for $1. How much do 24 pencils cost?",
        ["$6", "$7", "$8", "$9", "$12"], 2,
        "24 pencils is 8 groups of 3, so the cost is $8.",
        "How many groups of 3 are in 24?",
    ),
    _q(
        "log-03", 2016, 12, Topic.LOGIC, _M,
        "A car travels 150 miles in 2.5 hours. At the same rate, how many miles does it travel in 4 hours?",
        ["200", "220", "240", "250", "260"], 2,
        "The rate is 150 ÷ 2.5 = 60 miles per hour, so in 4 hours it travels 240 miles.",
        "Find the speed first.",
    ),
    _q(
        "log-04", 2019, 13, Topic.LOGIC, _M,
        "The average of five numbers is 18. After one number is removed, the average of the remaining four is 16. What number was removed?",
        ["16", "18", "22", "26", "34"], 3,
        "The five numbers sum to 90 and the four remaining sum to 64, so the removed number is 26.",
        "Convert each average into a total.",
    ),
    _q(
        "log-05", 2021, 17, Topic.LOGIC, _H,
        "Alice can paint a fence in 3 hours and Bob can paint it in 6 hours. How many hours does it take them working together?",
        ["1.5", "2", "2.5", "4.5", "9"], 1,
        "Together they paint 1/3 + 1/6 = 1/2 of the fence per hour, so they need 2 hours.",
        "Add the fractions of the job done per hour.",
    ),
    _q(
        "log-06", 2023, 16, Topic.LOGIC, _H,
        "The price of a shirt is increased by 20% and then the new price is decreased by 20%. The final price is what percent of the original price?",
        ["80%", "92%", "96%", "100%", "104%"], 2,
        "The price is multiplied by 1.2 and then by 0.8, and 1.2 × 0.8 = 0.96, so 96%.",
        "Percent changes multiply; they do not add.",
    ),
]


@lru_cache(maxsize=1)
def default_store() -> QuestionStore:
    """The bundled bank, built once per process."""
    return QuestionStore(_QUESTIONS)
