import sys
import os
import json
import argparse
from calc.engine_config import load_engine_config
from calc.input_normalizer import parse_mode
from calc.plan_calculator import PlanCalculator
from model.PlanInputs import PlanMode
from render.renderers import RENDERER_REGISTRY, parse_age_range


INPUT_PARAMETERS_DIR = os.path.normpath(os.path.join(os.path.dirname(__file__), '../input-parameters'))
SETTINGS_PATH = os.path.normpath(os.path.join(os.path.dirname(__file__), '../reference', 'solver-settings.json'))


def load_plan_spec(plan_name: str, base_dir: str = INPUT_PARAMETERS_DIR) -> dict:
    """Load the raw plan fields for a plan.

    Args:
        plan_name: Name of the plan (folder in input-parameters)
        base_dir: Directory holding the plan folders

    Returns:
        The raw spec dictionary

    Raises:
        FileNotFoundError: If the plan's spec.json does not exist
    """
    spec_path = os.path.join(base_dir, plan_name, 'spec.json')
    if not os.path.exists(spec_path):
        raise FileNotFoundError(spec_path)
    with open(spec_path, 'r') as f:
        return json.load(f)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Retirement savings projection calculator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Renderers:
  Projection  Full table of each account's flows by year (default)
  Balances    Closing balances by account and final totals
  Summary     Mode, resolved values and ending position
  Json        Result as a JSON document

Plan modes:
  standard       Project the entered years at the entered expense
  findMaxYears   Find how many years the entered expense can be sustained
  solveExpenses  Find the largest expense sustainable for the entered years

Examples:
  python src/Program.py sample
  python src/Program.py sample --mode Summary
  python src/Program.py sample --plan-mode findMaxYears
  python src/Program.py sample --plan-mode solveExpenses --mode Balances
  python src/Program.py sample --ages 60-
        """
    )
    parser.add_argument('plan_name', help='Name of the plan (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='Projection',
                        help='Output renderer: Projection (default), Balances, Summary, Json')
    parser.add_argument('--plan-mode', '-p',
                        choices=[mode.value for mode in PlanMode],
                        default=None,
                        help="Planning question to answer (defaults to the plan's 'mode' field)")
    parser.add_argument('--ages', '-a',
                        default=None,
                        help="Age range to display, e.g. '60-70', '65-', '-50' or '62'")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        spec = load_plan_spec(args.plan_name)
    except FileNotFoundError as e:
        print(f"Plan file not found: {e}", file=sys.stderr)
        sys.exit(1)

    config = load_engine_config(SETTINGS_PATH)
    mode = parse_mode(args.plan_mode) if args.plan_mode else None
    result = PlanCalculator(config).calculate_from_spec(spec, mode)

    start_age = end_age = None
    if args.ages:
        try:
            start_age, end_age = parse_age_range(args.ages, result)
        except ValueError:
            parser.error(f"Invalid age range: {args.ages}")

    renderer = RENDERER_REGISTRY[args.mode](start_age, end_age)
    renderer.render(result)


if __name__ == "__main__":
    main()
