"""Example running a bulk keyword research batch against the HTTP API."""

from dotenv import load_dotenv

from seobatch import Batch, HttpResearchClient

load_dotenv()

client = HttpResearchClient.from_env()

# Three parallel jobs, 2 minute research timeout
batch = (Batch(client, max_concurrent=3)
        .set_params(client_id=7, country="TR")
        .set_research_timeout(120)
        .add_keywords(["ayakkabı", "spor ayakkabı", "koşu ayakkabısı", "", "ayakkabı"])
        .on_progress(lambda snap, elapsed: print(f"{snap.completed + snap.error}/{snap.total} after {elapsed:.0f}s"))
        .on_error(lambda job, error: print(f"  {job.keyword}: {error}")))

print(f"Running batch with {len(batch)} keywords...")

# Ctrl+C stops new jobs from starting, running ones finish
run = batch.run()
try:
    run.wait()
except KeyboardInterrupt:
    run.cancel()
    run.wait()

run.status(print_status=True)

for result in run.results().values():
    top = sorted(result.items, key=lambda item: item.search_volume or 0, reverse=True)[:5]
    print(f"\n{result.keyword} (record {result.tracking_record_id}):")
    for item in top:
        print(f"  {item.keyword:<40} {item.search_volume or '-'}")

client.close()
