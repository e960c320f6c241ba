"""Workflow composition guidance shown alongside validation errors.

Each entry is plain text looked up verbatim by the workflow tools.
"""

from typing import Dict


WORKFLOW_COMPOSITION_GUIDE: Dict[str, str] = {
    "core_principles": """\
Core principles of n8n workflow composition:
1. Every workflow starts with exactly one entry point: a trigger node.
   - Automatic triggers (Schedule Trigger, Webhook, app triggers such as
     Gmail Trigger or Slack Trigger) run the workflow on their own and
     allow the workflow to be activated.
   - The Manual Trigger only runs when started from the editor. A workflow
     whose only trigger is manual cannot be activated.
2. Data flows from node to node as a list of items. Each node receives the
   items produced by the node connected to its input.
3. Node names must be unique within a workflow; connections refer to nodes
   by name.
4. Keep workflows small and focused. Split large automations into
   sub-workflows called with the Execute Workflow node.
5. Credentials are referenced by ID and name, never embedded in parameters.""",

    "node_categories": """\
Node categories (use the full type identifier in the "type" field):
- Triggers: n8n-nodes-base.manualTrigger, n8n-nodes-base.scheduleTrigger,
  n8n-nodes-base.webhook, n8n-nodes-base.formTrigger,
  n8n-nodes-base.emailReadImap, app triggers such as
  n8n-nodes-base.githubTrigger or n8n-nodes-base.slackTrigger
- Data transformation: n8n-nodes-base.set, n8n-nodes-base.code,
  n8n-nodes-base.itemLists, n8n-nodes-base.splitOut,
  n8n-nodes-base.aggregate, n8n-nodes-base.merge,
  n8n-nodes-base.dateTime, n8n-nodes-base.crypto, n8n-nodes-base.html,
  n8n-nodes-base.xml, n8n-nodes-base.markdown
- Flow control: n8n-nodes-base.if, n8n-nodes-base.switch,
  n8n-nodes-base.filter, n8n-nodes-base.splitInBatches,
  n8n-nodes-base.wait, n8n-nodes-base.noOp,
  n8n-nodes-base.executeWorkflow, n8n-nodes-base.stopAndError
- HTTP and webhooks: n8n-nodes-base.httpRequest,
  n8n-nodes-base.respondToWebhook, n8n-nodes-base.graphql
- Databases and storage: n8n-nodes-base.postgres, n8n-nodes-base.mySql,
  n8n-nodes-base.mongoDb, n8n-nodes-base.redis,
  n8n-nodes-base.googleSheets, n8n-nodes-base.airtable
- Communication: n8n-nodes-base.slack, n8n-nodes-base.gmail,
  n8n-nodes-base.emailSend, n8n-nodes-base.telegram,
  n8n-nodes-base.discord, n8n-nodes-base.microsoftTeams
- AI: @n8n/n8n-nodes-langchain.agent, @n8n/n8n-nodes-langchain.lmChatOpenAi,
  @n8n/n8n-nodes-langchain.chainLlm""",

    "common_patterns": """\
Common workflow patterns and how to connect them:
- Linear pipeline: Trigger -> fetch (HTTP Request) -> transform (Set/Code)
  -> deliver (Slack, Gmail, database).
- Conditional branch: route items through an IF node. Output 0 is "true",
  output 1 is "false"; connect each output to its own branch.
- Fan-out / fan-in: connect one output to several nodes, then join the
  branches again with a Merge node.
- Batch processing: Split In Batches -> process -> loop back to Split In
  Batches until all items are handled.
- Webhook API: Webhook -> process -> Respond to Webhook.

Connections format: the "connections" object maps each SOURCE node name to
its outputs, for example:
{
  "Schedule Trigger": {
    "main": [[{"node": "HTTP Request", "type": "main", "index": 0}]]
  }
}
Every source and target name must match the "name" of a node in "nodes".""",

    "workflow_creation_process": """\
Workflow creation process:
1. Identify the trigger: what starts the workflow (a schedule, an incoming
   webhook, an event in another app, or a manual run)?
2. List the steps between the trigger and the result, one node per step.
3. For each step pick the node type from the node categories and fill in its
   parameters.
4. Give every node a unique "name", a "type", a "typeVersion" and a
   "position" [x, y].
5. Wire the nodes together in "connections", keyed by source node name.
6. Create the workflow inactive, test it, then activate it once it runs
   correctly.

Minimal valid workflow:
{
  "name": "Example",
  "nodes": [
    {"name": "Schedule Trigger", "type": "n8n-nodes-base.scheduleTrigger",
     "typeVersion": 1, "position": [0, 0], "parameters": {}},
    {"name": "Set", "type": "n8n-nodes-base.set",
     "typeVersion": 3, "position": [200, 0], "parameters": {}}
  ],
  "connections": {
    "Schedule Trigger": {"main": [[{"node": "Set", "type": "main", "index": 0}]]}
  }
}""",
}
