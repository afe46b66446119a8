#!/usr/bin/env python3
"""
MCPFlow CLI - plan and run multi-step requests over tool-providing services.
"""
import asyncio
import sys
import os
import logging
import argparse

from mcpflow.agents.classifier import RequestClassifier
from mcpflow.agents.orchestrator import Orchestrator
from mcpflow.agents.responder import Responder
from mcpflow.core.types import Plan
from mcpflow.tools import initialize_tools


def print_progress(plan: Plan) -> None:
    """Observer printing one line per published state change."""
    states = " ".join(f"{s.id}={s.status.value}" for s in plan.steps)
    print(f"[{plan.status.value:9}] {plan.progress:3d}%  {states}")


def print_plan(plan: Plan) -> None:
    print(plan.description)
    for step in plan.steps:
        deps = f" (after {', '.join(step.dependencies)})" if step.dependencies else ""
        print(f"  {step.id}: {step.service}.{step.tool} {step.args}{deps}")


async def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description='MCPFlow CLI - plan and run multi-step requests over tool-providing services.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py "read 'notes.txt'"
  python main.py "search for quarterly revenue and save results"
  python main.py --plan-only "write 'hello' to file 'greeting.txt'"
  python main.py -w /tmp/sandbox "read file 'data/input.csv'"
        """
    )
    parser.add_argument('request', nargs='*', help='Request to plan and execute')
    parser.add_argument('-w', '--workspace', default=None,
                        help='Root directory for the File System service (default: workspace_root setting)')
    parser.add_argument('--plan-only', action='store_true',
                        help='Print the plan without executing it')
    parser.add_argument('--chat', action='store_true',
                        help='Always answer with the model in a single turn')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging')

    args = parser.parse_args()

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    if args.request:
        request = " ".join(args.request)
    else:
        request = input("Enter your request: ")

    if not request.strip():
        print("Error: No request provided")
        parser.print_help()
        sys.exit(1)

    registry = initialize_tools(workspace_root=args.workspace)
    orchestrator = Orchestrator(registry)
    classifier = RequestClassifier()

    try:
        if args.chat or not classifier.needs_plan(request):
            if not os.getenv("OPENAI_API_KEY"):
                print("Error: OPENAI_API_KEY environment variable not set")
                print("Please set it in a .env file or as an environment variable")
                sys.exit(1)
            print(await Responder(registry).answer(request))
            return

        plan = orchestrator.create_plan(request)
        print_plan(plan)
        if args.plan_only:
            return

        print("=" * 50)
        plan = await orchestrator.execute_plan(plan.id, print_progress)
        print("=" * 50)
        for step in plan.steps:
            outcome = step.result if step.error is None else f"ERROR: {step.error}"
            print(f"{step.id} [{step.status.value}] {step.service}.{step.tool}: {outcome}")
        if plan.error:
            print(f"Plan failed: {plan.error}")
            sys.exit(2)
    except Exception as e:
        print(f"Error: {e}")
        logging.exception("Detailed error information:")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
