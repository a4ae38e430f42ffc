# Наборы заданий для мини-игр, по id игры из справочника games.
DEBUG_CHALLENGES = [
    {
        "id": 1,
        "title": "Fix the Syntax Error",
        "description": "Find and fix the syntax error in this Python code.",
        "language": "python",
        "code": "def calculate_sum(a, b)\n    return a + b\n\nprint(calculate_sum(5, 10))",
        "solution": "def calculate_sum(a, b):\n    return a + b\n\nprint(calculate_sum(5, 10))",
        "hint": "Check the function definition line carefully.",
        "points": 100,
    },
    {
        "id": 2,
        "title": "Fix the Logic Error",
        "description": "This function should return the average of an array, but it's not working correctly.",
        "language": "javascript",
        "code": (
            "function calculateAverage(numbers) {\n  let sum = 0;\n"
            "  for (let i = 0; i <= numbers.length; i++) {\n    sum += numbers[i];\n  }\n"
            "  return sum / numbers.length;\n}\n\nconsole.log(calculateAverage([10, 20, 30, 40]));"
        ),
        "solution": (
            "function calculateAverage(numbers) {\n  let sum = 0;\n"
            "  for (let i = 0; i < numbers.length; i++) {\n    sum += numbers[i];\n  }\n"
            "  return sum / numbers.length;\n}\n\nconsole.log(calculateAverage([10, 20, 30, 40]));"
        ),
        "hint": "Check the loop condition carefully.",
        "points": 150,
    },
]

QUIZ_CHALLENGES = [
    {
        "id": 1,
        "question": "Which of the following is NOT a valid JavaScript data type?",
        "options": ["String", "Number", "Boolean", "Float"],
        "correct_answer": "Float",
        "explanation": (
            "JavaScript has String, Number, Boolean, Object, Undefined, Null, Symbol, and BigInt "
            "data types. Floating-point numbers are part of the Number type."
        ),
        "points": 50,
    },
    {
        "id": 2,
        "question": "What will be the output of the following Python code?\n\nx = 5\ny = 10\nprint(x + y * 2)",
        "options": ["25", "30", "15", "20"],
        "correct_answer": "25",
        "explanation": "Multiplication binds tighter than addition: y * 2 is 20, then 5 + 20 is 25.",
        "points": 75,
    },
]

ALGORITHM_CHALLENGES = [
    {
        "id": 1,
        "title": "Reverse a String",
        "description": "Write a function that reverses a string without using the built-in reverse() method.",
        "language": "javascript",
        "code": "function reverseString(str) {\n  // Your code here\n}\n\nconsole.log(reverseString('hello'));",
        "test_cases": [
            {"input": "hello", "expected": "olleh"},
            {"input": "javascript", "expected": "tpircsavaj"},
        ],
        "hint": "Try using a loop that starts from the end of the string.",
        "points": 200,
    },
    {
        "id": 2,
        "title": "Find the Missing Number",
        "description": "Given an array containing n distinct numbers taken from 0, 1, 2, ..., n, find the missing number.",
        "language": "python",
        "code": "def find_missing_number(nums):\n    # Your code here\n\nprint(find_missing_number([3, 0, 1]))",
        "test_cases": [
            {"input": [3, 0, 1], "expected": 2},
            {"input": [9, 6, 4, 2, 3, 5, 7, 0, 1], "expected": 8},
        ],
        "hint": "Consider using the sum formula for the first n natural numbers.",
        "points": 250,
    },
]

CODE_COMPLETION_CHALLENGES = [
    {
        "id": 1,
        "title": "Complete the Function",
        "description": "Complete the function to check if a number is prime.",
        "language": "python",
        "code": (
            "def is_prime(n):\n    if n <= 1:\n        return False\n    if n <= 3:\n        return True\n"
            "    if n % 2 == 0 or n % 3 == 0:\n        return False\n    # Complete the function\n\n"
            "print(is_prime(17))"
        ),
        "solution": (
            "def is_prime(n):\n    if n <= 1:\n        return False\n    if n <= 3:\n        return True\n"
            "    if n % 2 == 0 or n % 3 == 0:\n        return False\n    i = 5\n    while i * i <= n:\n"
            "        if n % i == 0 or n % (i + 2) == 0:\n            return False\n        i += 6\n"
            "    return True\n\nprint(is_prime(17))"
        ),
        "hint": "You need to check divisibility by numbers of the form 6k +/- 1.",
        "points": 175,
    },
]

CHALLENGES = {
    1: DEBUG_CHALLENGES,
    2: QUIZ_CHALLENGES,
    3: ALGORITHM_CHALLENGES,
    4: CODE_COMPLETION_CHALLENGES,
}
