import sqlite3

from config.settings import settings
from storage.interviews import complete_interview, get_interview, insert_interview, update_transcript
from storage.resumes import get_job_description, get_resume, insert_job_description, insert_resume, list_resumes


def test_tables_exist() -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert {"resumes", "job_descriptions", "interviews"} <= names


def test_resume_scoped_to_owner() -> None:
    record = insert_resume(user_id="u1", raw_text="Ada resume", parsed={"name": "Ada"})
    assert get_resume(record.resume_id).parsed == {"name": "Ada"}
    assert get_resume(record.resume_id, "u1").raw_text == "Ada resume"
    assert get_resume(record.resume_id, "u2") is None
    assert [item.resume_id for item in list_resumes("u1")] == [record.resume_id]
    assert list_resumes("u2") == []


def test_interview_lifecycle() -> None:
    resume = insert_resume(user_id="u1", raw_text="text", parsed={})
    jd = insert_job_description(title="SRE", company="Acme", raw_text="jd", parsed={"title": "SRE"})
    assert get_job_description(jd.job_description_id).company == "Acme"

    interview = insert_interview(
        user_id="u1",
        resume_id=resume.resume_id,
        job_description_id=jd.job_description_id,
        skill_gap_analysis=["Linux", "Go"],
    )
    assert get_interview(interview.interview_id, "u2") is None

    update_transcript(interview.interview_id, [{"question": "Q1", "answer": "A1", "feedback": "ok"}])
    loaded = get_interview(interview.interview_id, "u1")
    assert loaded.status == "IN_PROGRESS"
    assert loaded.skill_gap_analysis == ["Linux", "Go"]
    assert loaded.transcript[0]["answer"] == "A1"
    assert loaded.evaluation is None

    complete_interview(interview.interview_id, {"overall_score": 80})
    done = get_interview(interview.interview_id)
    assert done.status == "COMPLETED"
    assert done.evaluation == {"overall_score": 80}
