#!/usr/bin/env python3
"""MCP Server for Savings Planner.

This server exposes retirement savings projections as MCP tools,
allowing AI assistants to answer questions about a saver's plan.
"""

import os
import sys
import json
import asyncio
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiPlanTools


# Create the MCP server
server = Server("savings-planner")

# Global tools instance (initialized on startup)
tools: MultiPlanTools | None = None


def get_tools() -> MultiPlanTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default plan can be set via SAVINGS_PLANNER_PLAN env var
        default_plan = os.environ.get('SAVINGS_PLANNER_PLAN')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiPlanTools(base_path, default_plan)
    return tools


# Common plan parameter schema
PLAN_PARAM = {
    "type": "string",
    "description": "The plan name (folder in input-parameters). If not specified, uses the default plan. Use list_plans to see available plans."
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available savings planning tools."""
    return [
        Tool(
            name="list_plans",
            description="List all available savings plans with their mode, ages and expense.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="reload_plans",
            description="Reload all savings plans from disk. Use this after adding, modifying, or removing plan spec.json files.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_plan_overview",
            description="Get an overview of the plan: ages, income, expenses, account settings and the result of the plan's mode. Use this first to understand the plan.",
            inputSchema={
                "type": "object",
                "properties": {
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_projection",
            description="Get the year-by-year projection of RRSP, TFSA and non-registered accounts. Optionally limit to an age range.",
            inputSchema={
                "type": "object",
                "properties": {
                    "start_age": {
                        "type": "integer",
                        "description": "Optional: first age to include"
                    },
                    "end_age": {
                        "type": "integer",
                        "description": "Optional: last age to include"
                    },
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_year_details",
            description="Get the income, inflated expense and each account's opening, contribution, withdrawal and closing for one age.",
            inputSchema={
                "type": "object",
                "properties": {
                    "age": {
                        "type": "integer",
                        "description": "The age to get details for"
                    },
                    "plan": PLAN_PARAM
                },
                "required": ["age"]
            }
        ),
        Tool(
            name="get_final_balances",
            description="Get the closing balance of each account at the end of the projection.",
            inputSchema={
                "type": "object",
                "properties": {
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="find_max_years",
            description="Find the largest number of years the starting expense can be sustained. Optionally try a different starting expense.",
            inputSchema={
                "type": "object",
                "properties": {
                    "expenses_annual": {
                        "type": "number",
                        "description": "Optional: starting annual expense to test instead of the plan's value"
                    },
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="solve_max_expenses",
            description="Find the largest starting annual expense sustainable over the planning horizon. Optionally try a different horizon.",
            inputSchema={
                "type": "object",
                "properties": {
                    "years_to_plan": {
                        "type": "integer",
                        "description": "Optional: number of years to plan for instead of the plan's value"
                    },
                    "plan": PLAN_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="compare_plans",
            description="Compare two savings plans and report which leaves the stronger position, with a recommendation.",
            inputSchema={
                "type": "object",
                "properties": {
                    "plan1": {
                        "type": "string",
                        "description": "First plan name to compare"
                    },
                    "plan2": {
                        "type": "string",
                        "description": "Second plan name to compare"
                    },
                    "metrics": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: specific metrics to compare. Options: 'ending_total', 'years_projected', 'tax_deferred_withdrawal', 'max_years', 'max_expenses'. If not specified, compares all metrics."
                    }
                },
                "required": ["plan1", "plan2"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        sp_tools = get_tools()
        plan = arguments.get("plan")

        if name == "list_plans":
            result = sp_tools.list_plans()
        elif name == "reload_plans":
            result = sp_tools.reload_plans()
        elif name == "get_plan_overview":
            result = sp_tools.get_plan_overview(plan)
        elif name == "get_projection":
            result = sp_tools.get_projection(
                arguments.get("start_age"),
                arguments.get("end_age"),
                plan
            )
        elif name == "get_year_details":
            result = sp_tools.get_year_details(arguments["age"], plan)
        elif name == "get_final_balances":
            result = sp_tools.get_final_balances(plan)
        elif name == "find_max_years":
            result = sp_tools.find_max_years(arguments.get("expenses_annual"), plan)
        elif name == "solve_max_expenses":
            result = sp_tools.solve_max_expenses(arguments.get("years_to_plan"), plan)
        elif name == "compare_plans":
            result = sp_tools.compare_plans(
                arguments["plan1"],
                arguments["plan2"],
                arguments.get("metrics")
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
