"""
Command line entry point for surveyflow.

    surveyflow validate survey.yaml
    surveyflow render survey.yaml --answers '{"q_name": "Sam"}'
    surveyflow dot survey.yaml --mode detailed -o survey.dot

Survey files are YAML or JSON (chosen by extension).
Exit codes: 0 ok, 1 survey not publishable, 2 input could not be loaded.
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

import yaml

from surveyflow.analyzer import analyze_survey
from surveyflow.backends import DotMode, generate_dot, save_dot_file
from surveyflow.evaluator import count_answered, resolve_jump, visible_questions
from surveyflow.model import Survey
from surveyflow.piping import PipingContext, apply_piping
from surveyflow.serialization import SerializationError, survey_from_json, survey_from_yaml

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_LOAD_ERROR = 2


def load_survey(path: str) -> Survey:
    with open(path, encoding='utf-8') as fh:
        content = fh.read()
    if path.lower().endswith('.json'):
        return survey_from_json(content)
    return survey_from_yaml(content)


def _cmd_validate(survey: Survey, args) -> int:
    report = analyze_survey(survey)

    print(f"Survey: {report.survey_id}")
    print(f"  Questions: {report.total_questions}  Rules: {report.total_rules}  "
          f"Piped: {report.questions_with_piping}")
    for err in report.logic_errors:
        print(f"  [logic] {err.question_id} (#{err.question_index}): {err.message}")
    for err in report.piping_errors:
        print(f"  [piping] {err.question_id} (#{err.question_index}): {err.message} {{{{{err.placeholder}}}}}")
    for warning in report.warnings:
        print(f"  [warning] {warning}")

    if report.publishable:
        print("OK: survey can be published")
        return EXIT_OK
    print("FAILED: fix the errors above before publishing")
    return EXIT_INVALID


def _cmd_render(survey: Survey, args) -> int:
    answers = json.loads(args.answers) if args.answers else {}
    if not isinstance(answers, dict):
        raise SerializationError("--answers must be a JSON object")

    context = PipingContext(answers=answers, question_order=survey.question_order)
    shown = visible_questions(survey.questions, answers)
    for question in shown:
        print(f"Q{question.order}. {apply_piping(question.text, context)}")
        if question.description:
            print(f"    {apply_piping(question.description, context)}")
        target = resolve_jump(question, answers)
        if target:
            print(f"    -> next: {target}")
    print(f"Answered {count_answered(survey.questions, answers)} of {len(shown)} visible question(s)")
    return EXIT_OK


def _cmd_dot(survey: Survey, args) -> int:
    mode = DotMode(args.mode)
    if args.output:
        save_dot_file(survey, args.output, mode=mode)
        logger.info("Wrote %s", args.output)
    else:
        print(generate_dot(survey, mode=mode))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='surveyflow', description='Survey flow validation and preview')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p_validate = sub.add_parser('validate', help='Check logic and piping before publishing')
    p_validate.add_argument('survey', help='Path to survey YAML/JSON')
    p_validate.set_defaults(func=_cmd_validate)

    p_render = sub.add_parser('render', help='Show visible questions with answers piped in')
    p_render.add_argument('survey', help='Path to survey YAML/JSON')
    p_render.add_argument('--answers', help='Answers as a JSON object (questionId -> value)')
    p_render.set_defaults(func=_cmd_render)

    p_dot = sub.add_parser('dot', help='Graphviz diagram of question dependencies')
    p_dot.add_argument('survey', help='Path to survey YAML/JSON')
    p_dot.add_argument('--mode', choices=[m.value for m in DotMode], default=DotMode.SIMPLE.value)
    p_dot.add_argument('-o', '--output', help='Write to this file instead of stdout')
    p_dot.set_defaults(func=_cmd_dot)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        survey = load_survey(args.survey)
        return args.func(survey, args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # SerializationError and json.JSONDecodeError are ValueErrors
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR


if __name__ == '__main__':
    sys.exit(main())
