"""Prompt text sent to the model.

``SYSTEM_INSTRUCTION`` is fixed for the process lifetime. Templates that take
arguments are ``str.format`` templates, so their literal JSON braces are doubled.
"""

from __future__ import annotations

SYSTEM_INSTRUCTION = """\
You are CodeLens, a multi-language AI debugger supporting R, Python, C++, JavaScript \
and Java with deep expertise in each language's idioms, common errors, and best practices.

## PRIMARY FOCUS: R PROGRAMMING
When analyzing R code you excel at these common errors:

1. "object not found": variable typo or forgot to assign/load data. Suggest checking \
spelling and using ls() to see available objects.
2. "object of type 'closure' is not subsettable": the user subset a function instead \
of calling it. Explain that a function needs () to execute.
3. "could not find function": package not loaded (forgot library()) or a typo.
4. "subscript out of bounds": index beyond vector/data frame length. Show length(), \
nrow() or ncol() checks.
5. "arguments imply differing number of rows": data.frame() columns of different lengths.
6. "non-numeric argument to binary operator": arithmetic on factors or characters. \
Suggest as.numeric() or str().
7. "cannot open the connection": wrong file path. Suggest file.exists() and getwd().
8. "package 'X' is not installed": install.packages("X") once, library(X) every session.
9. "$ operator is invalid for atomic vectors": $ is for lists/data.frames, use [[i]] \
for vectors.
10. "replacement has length zero": assigning an empty result, often from bad subsetting.

When explaining R errors, use tidyverse-friendly language where it helps, show both \
base R and tidyverse solutions when relevant, and explain R quirks (1-indexing, \
vectorization, recycling, factors vs characters, the %>% pipe).

Goals for ALL languages:
- Extract code or math from inputs
- Diagnose logic/syntax errors and explain root causes
- Produce corrected code and minimal test cases
- Offer clear, friendly explanations adapted to beginner/advanced levels
- Generate short practice problems

Format:
IMPORTANT: Return ONLY valid JSON, no markdown fences. Start the response with { and end with }.
"""

EXTRACTION_PROMPT = """\
Analyze this image. If it contains code or a math problem, extract it.
Return JSON matching schema A:
{
  "type": "code_extraction",
  "language": "python|java|cpp|js|r|unknown",
  "text": "<code_text>",
  "lines": [{"n": 1, "text": "..."}],
  "confidence": 0.0-1.0
}
"""

ANALYSIS_PROMPT = """\
Analyze the following {language} code for a {mode} user.
Code:
{code}

Return a JSON object with the keys "errorAnalysis", "correction", "explanation", \
"reasoningSteps", "followUpSuggestion" and, optionally, "flowDiagram".

1. "errorAnalysis": Schema B
{{
  "type": "error_analysis",
  "errors": [{{"line": int, "kind": "syntax|logic|runtime", "root_cause": "...", "confidence": 0.0-1.0}}],
  "short_overlay": "..."
}}
IMPORTANT: 'line' must point to the 1-based line number of the ACTUAL code statement \
containing the error. Do not select comments or blank lines.

2. "correction": Schema C
{{
  "type": "correction",
  "corrected_code": "<code>",
  "patch_summary": "...",
  "fixed_lines": [int],
  "tests": [{{"id": "t1", "input": "...", "expected": "..."}}],
  "exec_safe": true|false
}}
IMPORTANT: 'fixed_lines' must be 1-based line numbers in 'corrected_code' that \
correspond to the fix.
IMPORTANT: 'tests' must ALWAYS contain at least ONE test case, for example \
[{{"id": "t1", "input": "c(10, 20, 30)", "expected": "60"}}] for R or \
[{{"id": "t1", "input": "[1,2,3]", "expected": "6"}}] for Python. Never leave it empty.

3. "explanation": Schema F
{{
  "type": "explanation",
  "text": "..."
}}

4. "reasoningSteps": ["step 1", "step 2", "step 3"]
A plain array of 3-5 short sentences explaining how you identified the bug and \
arrived at the fix (e.g. "Detected undefined variable b on line 3").

5. "followUpSuggestion": "suggestion string"
ONE short sentence suggesting the next improvement (input validation, complexity, \
edge cases). Return an empty string if nothing else is needed.

6. "flowDiagram": (optional, only if the code has loops, conditionals or function calls)
{{
  "ascii": "<diagram_text>",
  "caption": "short description"
}}
Keep the diagram to 8-12 lines using the characters ─ │ ┌ ┐ └ ┘ ↓ ← and mark bugs \
with ⚠️ or ❌ and correct paths with ✓. If there are no loops or conditionals, omit \
this field entirely.
"""

PRACTICE_PROMPT = """\
Generate a single practice problem specifically about: {concept_label}.

Context from analysis: "{context}"

Settings:
- Language/Type: {language}
- Difficulty: {mode}
- Request ID: {request_id}

Instructions:
- For code bugs (e.g. undefined variable, off-by-one), create a small code snippet \
with a similar mistake.
- For reasoning/math problems (e.g. sequence patterns), create a similar reasoning challenge.
- Do NOT generate unrelated word problems.
- The practice must target the same underlying concept as the original error.
"""

PRACTICE_AVOID_PROMPT = """
CRITICAL INSTRUCTION: The user has already seen the following problem: "{previous_prompt}".
You MUST generate a DIFFERENT problem.
"""

PRACTICE_SCHEMA_PROMPT = """
Return JSON Schema G:
{
  "type": "practice",
  "problems": [{"id": "p1", "prompt": "...", "hint": "...", "solution": "...", "grader": "exact|fuzzy"}]
}
"""

EXECUTION_PROMPT = """\
Simulate the execution of this code against the provided test cases.

Code to test:
```
{code}
```

Test cases:
{tests_json}

Return JSON Schema D:
{{
  "type": "execution_result",
  "test_results": [{{"id": "t1", "status": "pass|fail", "output": "...", "expected": "..."}}],
  "stdout": "...",
  "stderr": "..."
}}

Important: Always return at least one test result, even if simulated. If the code \
has syntax errors, show them in stderr.
"""
