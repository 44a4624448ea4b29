"""k6 load-test script and k6-operator TestRun templates."""

import json
from string import Template as _TextTemplate

from src.config.constants import SUMMARY_TREND_STATS
from src.config.schema import FleetConfig, LoadProfile
from src.fleet import layout
from src.templates.renderer import Template, TemplateKind

SCRIPT_MARKER = TemplateKind.SCRIPT.marker
TASK_MARKER = TemplateKind.TASK.marker

K6_TEST_TEMPLATE = _TextTemplate("""\
import http from 'k6/http';
import { check, sleep } from 'k6';
import { Trend, Rate, Counter } from 'k6/metrics';

// Custom metrics
const customTrend = new Trend('custom_trend');
const customRate = new Rate('custom_rate');
const customCounter = new Counter('custom_counter');

export const options = {
  scenarios: {
    $scenario: {
      executor: '$executor',
      startVUs: 0,
      stages: [
$stages
      ],
      gracefulRampDown: '$graceful_ramp_down',
    },
  },
  thresholds: $thresholds,
  summaryTrendStats: $trend_stats,
};

export default function () {
  const url = '$url';
  const res = http.get(url);

  customTrend.add(res.timings.duration);
  customRate.add(res.status === 200);
  customCounter.add(1);

  check(res, {
    'status was 200': (r) => r.status == 200,
    'transaction time OK': (r) => r.timings.duration < $max_duration_ms
  });

  sleep(1);
}

export function handleSummary(data) {
  return {
    'stdout': JSON.stringify(data, null, 2),
    './summary.json': JSON.stringify(data),
  };
}
""")


def _js_stages(profile: LoadProfile) -> str:
    return "\n".join(
        f"        {{ duration: '{s.duration}', target: {s.target} }},"
        for s in profile.stages
    )


def script_template(config: FleetConfig) -> Template:
    """k6 script with fleet-wide constants filled in and the target URL left templated."""
    profile = config.load_profile
    body = K6_TEST_TEMPLATE.substitute(
        scenario=profile.scenario_name,
        executor=profile.executor,
        stages=_js_stages(profile),
        graceful_ramp_down=profile.graceful_ramp_down,
        thresholds=json.dumps(profile.thresholds, sort_keys=True),
        trend_stats=json.dumps(SUMMARY_TREND_STATS),
        url=layout.target_url(config, SCRIPT_MARKER),
        max_duration_ms=profile.max_duration_ms,
    )
    return Template(TemplateKind.SCRIPT, body)


def task_template(config: FleetConfig) -> Template:
    """TestRun bound to the ConfigMap and script file of the same identity."""
    body = {
        "apiVersion": "k6.io/v1alpha1",
        "kind": "TestRun",
        "metadata": {
            "name": layout.task_name(config, TASK_MARKER),
            "namespace": config.namespace,
        },
        "spec": {
            # Number of pods the virtual users are split across
            "parallelism": config.parallelism,
            "script": {
                "configMap": {
                    "name": layout.configmap_name(TASK_MARKER),
                    "file": layout.script_filename(TASK_MARKER),
                },
            },
            "arguments": f"--tag replica={TASK_MARKER}",
        },
    }
    return Template(TemplateKind.TASK, body)
